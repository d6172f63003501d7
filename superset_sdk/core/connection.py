"""
superset_sdk.core.connection - High-level connection management
================================================================

Resolves connection settings from arguments or ``SUPERSET_*`` environment
variables and lazily builds the client.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Optional

from superset_sdk.core.client import SupersetClient
from superset_sdk.core.errors import ConfigurationError
from superset_sdk.core.session import SupersetAuth, SupersetConfig

if TYPE_CHECKING:
    from superset_sdk.sql.client import SqlClient


DEFAULT_BASE_URL = "http://localhost:8088"


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes")


class SupersetConnection:
    """
    Connection manager for a Superset instance.

    Parameters
    ----------
    base_url : str, optional
        Superset URL. Falls back to SUPERSET_BASE_URL, then http://localhost:8088.
    username : str, optional
        Falls back to SUPERSET_USERNAME.
    password : str, optional
        Falls back to SUPERSET_PASSWORD.
    access_token : str, optional
        Pre-issued bearer token. Falls back to SUPERSET_ACCESS_TOKEN.
    session_cookie : str, optional
        Raw cookie header for SSO setups. Falls back to SUPERSET_SESSION_COOKIE.
    auth_provider : str, optional
        Login provider ("db", "ldap", ...). Falls back to SUPERSET_AUTH_PROVIDER.
    read_only : bool, optional
        Falls back to SUPERSET_READ_ONLY_MODE == "true".
    verify : bool, optional
        SSL verification. Falls back to SUPERSET_VERIFY_TLS.
    timeout : float, optional
        Request timeout in seconds. Falls back to SUPERSET_TIMEOUT, then 120.

    Examples
    --------
    >>> async with SupersetConnection() as conn:   # reads SUPERSET_* env vars
    ...     rows = await conn.sql.execute_sql(SqlExecuteRequest(1, "SELECT 1"))
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        access_token: Optional[str] = None,
        session_cookie: Optional[str] = None,
        auth_provider: Optional[str] = None,
        read_only: Optional[bool] = None,
        verify: Optional[bool] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._base_url = (base_url or os.environ.get("SUPERSET_BASE_URL") or DEFAULT_BASE_URL).rstrip("/")
        self._username = username or os.environ.get("SUPERSET_USERNAME", "")
        self._password = password or os.environ.get("SUPERSET_PASSWORD", "")
        self._access_token = access_token or os.environ.get("SUPERSET_ACCESS_TOKEN", "")
        self._session_cookie = session_cookie or os.environ.get("SUPERSET_SESSION_COOKIE", "")
        self._auth_provider = auth_provider or os.environ.get("SUPERSET_AUTH_PROVIDER") or "db"

        self._read_only = read_only if read_only is not None else _env_flag("SUPERSET_READ_ONLY_MODE", "false")
        self._verify = verify if verify is not None else _env_flag("SUPERSET_VERIFY_TLS", "true")

        if timeout is None:
            try:
                timeout = float(os.environ.get("SUPERSET_TIMEOUT", "120"))
            except ValueError:
                raise ConfigurationError("SUPERSET_TIMEOUT must be a number of seconds") from None
        self._timeout = timeout

        if not self._base_url.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"Invalid base_url {self._base_url!r}. Set SUPERSET_BASE_URL "
                "or pass base_url parameter."
            )

        if not (self._session_cookie or self._access_token or (self._username and self._password)):
            raise ConfigurationError(
                "Missing credentials. Set SUPERSET_USERNAME/SUPERSET_PASSWORD, "
                "SUPERSET_ACCESS_TOKEN or SUPERSET_SESSION_COOKIE, or pass them as parameters."
            )

        self._client: Optional[SupersetClient] = None
        self._sql: Optional["SqlClient"] = None

    def _build_auth(self) -> SupersetAuth:
        if self._session_cookie:
            return SupersetAuth("cookie", self._session_cookie)
        if self._access_token:
            return SupersetAuth("bearer", self._access_token)
        return SupersetAuth("password", (self._username, self._password))

    def build_config(self) -> SupersetConfig:
        return SupersetConfig(
            base_url=self._base_url,
            auth=self._build_auth(),
            auth_provider=self._auth_provider,
            read_only=self._read_only,
            timeout=self._timeout,
            verify=self._verify,
        )

    @property
    def client(self) -> SupersetClient:
        """Get or create the underlying client."""
        if self._client is None:
            self._client = SupersetClient(self.build_config())
        return self._client

    @property
    def sql(self) -> "SqlClient":
        """SQL Lab client bound to this connection."""
        if self._sql is None:
            from superset_sdk.sql.client import SqlClient
            self._sql = SqlClient(self.client)
        return self._sql

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
            self._sql = None

    async def __aenter__(self) -> "SupersetConnection":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def read_only(self) -> bool:
        return self._read_only


# Process-wide convenience instance; the core never consults it.
_connection: Optional[SupersetConnection] = None


def get_connection() -> SupersetConnection:
    """Get or create the shared connection built from the environment."""
    global _connection
    if _connection is None:
        _connection = SupersetConnection()
    return _connection


def reset_connection() -> None:
    global _connection
    if _connection is not None:
        _connection.close()
    _connection = None
