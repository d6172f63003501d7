"""
superset_sdk.core.client - Session-owning API client
=====================================================
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from requests import Response

from superset_sdk.core.auth import Authenticator, CsrfProvider, RefreshCoordinator
from superset_sdk.core.pipeline import RequestDescriptor, RequestPipeline
from superset_sdk.core.session import (
    CredentialMode,
    SessionState,
    SupersetConfig,
    SupersetSession,
    decode_body,
)


class SupersetClient:
    """
    Authenticated client for one Superset instance.

    Owns the session state and wires the transport, authenticator,
    refresh coordinator, CSRF provider and request pipeline together.

    Parameters
    ----------
    cfg : SupersetConfig
        Connection configuration

    Examples
    --------
    >>> async with SupersetClient(cfg) as client:
    ...     dbs = await client.request("GET", "/api/v1/database/")
    ...     await client.protected_request("PUT", "/api/v1/dataset/1", json={...})
    """

    def __init__(self, cfg: SupersetConfig) -> None:
        self.cfg = cfg
        self.transport = SupersetSession(cfg)
        self._state = SessionState.from_config(cfg)
        self.authenticator = Authenticator(self.transport, self._state)
        self.refresher = RefreshCoordinator(self.authenticator)
        self.csrf = CsrfProvider(self.transport, self.refresher)
        self.pipeline = RequestPipeline(self.transport, self._state, self.refresher, self.csrf)

    @property
    def is_authenticated(self) -> bool:
        return self._state.is_authenticated

    @property
    def read_only(self) -> bool:
        return self.cfg.read_only

    @property
    def credential_mode(self) -> CredentialMode:
        return self._state.credential_mode

    async def authenticate(self) -> None:
        """Establish a credential now instead of on the first request."""
        await self.refresher.ensure_authenticated()

    async def send(self, req: RequestDescriptor) -> Response:
        return await self.pipeline.send(req)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Unprotected call; returns the decoded body."""
        r = await self.send(RequestDescriptor(method, path, params, json, dict(headers or {})))
        return decode_body(r)

    async def protected_request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """CSRF-protected call; returns the decoded body."""
        r = await self.send(
            RequestDescriptor(method, path, params, json, dict(headers or {}), protected=True)
        )
        return decode_body(r)

    def close(self) -> None:
        self.transport.close()

    async def __aenter__(self) -> "SupersetClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()
