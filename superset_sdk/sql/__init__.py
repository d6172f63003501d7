"""
superset_sdk.sql - SQL Lab access
==================================

- SqlClient: synchronous SQL execution and database listing
- ReadOnlyGuard / validate_read_only: client-side write-intent veto

"""

from superset_sdk.sql.guard import ReadOnlyGuard, validate_read_only, WRITE_OPERATIONS
from superset_sdk.sql.client import SqlClient, SqlExecuteRequest

__all__ = [
    "SqlClient",
    "SqlExecuteRequest",
    "ReadOnlyGuard",
    "validate_read_only",
    "WRITE_OPERATIONS",
]
