"""
superset_sdk.core - Core connectivity and authentication
=========================================================

This module provides the foundational classes for talking to Superset:

- SupersetAuth / SupersetConfig: credential and connection configuration
- SupersetSession: low-level HTTP transport with retry and body decoding
- Authenticator / RefreshCoordinator / CsrfProvider: session lifecycle
- RequestPipeline: credential decoration with a single 401 retry
- SupersetClient: the assembled client
- SupersetConnection: environment-driven connection manager

"""

from superset_sdk.core.errors import (
    SupersetError,
    ConfigurationError,
    AuthenticationError,
    CsrfTokenError,
    InvalidRequestError,
    ReadOnlyViolation,
    TransportError,
    SupersetUpstreamError,
    SupersetAuthorizationError,
    SqlExecutionError,
    DatabaseError,
)
from superset_sdk.core.session import (
    SupersetAuth,
    SupersetConfig,
    SupersetSession,
    SessionState,
    CredentialMode,
    CsrfContext,
)
from superset_sdk.core.auth import Authenticator, RefreshCoordinator, CsrfProvider, SingleFlight
from superset_sdk.core.pipeline import RequestDescriptor, RequestPipeline, RequestState
from superset_sdk.core.client import SupersetClient
from superset_sdk.core.connection import SupersetConnection, get_connection

__all__ = [
    "SupersetError",
    "ConfigurationError",
    "AuthenticationError",
    "CsrfTokenError",
    "InvalidRequestError",
    "ReadOnlyViolation",
    "TransportError",
    "SupersetUpstreamError",
    "SupersetAuthorizationError",
    "SqlExecutionError",
    "DatabaseError",
    "SupersetAuth",
    "SupersetConfig",
    "SupersetSession",
    "SessionState",
    "CredentialMode",
    "CsrfContext",
    "Authenticator",
    "RefreshCoordinator",
    "CsrfProvider",
    "SingleFlight",
    "RequestDescriptor",
    "RequestPipeline",
    "RequestState",
    "SupersetClient",
    "SupersetConnection",
    "get_connection",
]
