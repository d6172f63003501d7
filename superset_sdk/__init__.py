"""
Superset Python SDK (superset_sdk)
==================================

An asyncio client for the Apache Superset REST API with managed
authentication, transparent token refresh and CSRF handling.

Usage
-----
>>> from superset_sdk import SupersetConnection
>>> from superset_sdk.sql import SqlExecuteRequest
>>>
>>> async with SupersetConnection(base_url="http://localhost:8088",
...                               username="admin", password="admin") as conn:
...     dbs = await conn.sql.get_databases()
...     result = await conn.sql.execute_sql(SqlExecuteRequest(1, "SELECT 1"))

Subpackages
-----------
- superset_sdk.core: Session, authentication, request pipeline and errors
- superset_sdk.sql: SQL Lab execution and read-only validation
- superset_sdk.api: Optional FastAPI REST gateway

"""

__version__ = "0.1.0"

# Core exports - available at package root
from superset_sdk.core.session import SupersetAuth, SupersetConfig
from superset_sdk.core.errors import (
    SupersetError,
    SupersetUpstreamError,
    AuthenticationError,
    ConfigurationError,
    ReadOnlyViolation,
)
from superset_sdk.core.client import SupersetClient
from superset_sdk.core.connection import SupersetConnection

# Convenience re-exports
from superset_sdk.sql import SqlClient, SqlExecuteRequest

__all__ = [
    # Version
    "__version__",
    # Core
    "SupersetAuth",
    "SupersetConfig",
    "SupersetClient",
    "SupersetConnection",
    "SupersetError",
    "SupersetUpstreamError",
    "AuthenticationError",
    "ConfigurationError",
    "ReadOnlyViolation",
    # SQL
    "SqlClient",
    "SqlExecuteRequest",
]
