"""
superset_sdk.core.pipeline - Authenticated request pipeline
============================================================

Runs one logical request through credential decoration, a single
401 -> refresh -> retry cycle, and error translation.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from requests import Response

from superset_sdk.core.auth import CsrfProvider, RefreshCoordinator, credential_headers
from superset_sdk.core.errors import SupersetError
from superset_sdk.core.session import (
    LOGIN_PATH,
    CredentialMode,
    SessionState,
    SupersetSession,
    error_from_response,
)


logger = logging.getLogger("superset_sdk.pipeline")


class RequestState(enum.Enum):
    INITIAL = "initial"
    RETRIED = "retried"
    DONE = "done"


@dataclass
class RequestDescriptor:
    """
    One logical API call.

    Parameters
    ----------
    method : str
        HTTP method
    path : str
        Path relative to the base URL, e.g. "/api/v1/sqllab/execute/"
    params : dict, optional
        Query string parameters
    json : any, optional
        JSON body
    headers : dict
        Extra headers; credential headers are applied on top
    protected : bool
        Whether the call needs a CSRF token (state-mutating calls)
    """
    method: str
    path: str
    params: Optional[Dict[str, Any]] = None
    json: Any = None
    headers: Dict[str, str] = field(default_factory=dict)
    protected: bool = False

    @property
    def is_login(self) -> bool:
        return LOGIN_PATH in self.path


class RequestPipeline:
    """
    Sends requests with at most one authorization retry.

    The per-request state machine is INITIAL -> (401) RETRIED -> DONE, or
    INITIAL -> DONE. A response received in RETRIED is always final.
    """

    def __init__(
        self,
        transport: SupersetSession,
        state: SessionState,
        refresher: RefreshCoordinator,
        csrf: CsrfProvider,
    ) -> None:
        self.transport = transport
        self.state = state
        self.refresher = refresher
        self.csrf = csrf

    async def _headers(self, req: RequestDescriptor) -> Dict[str, str]:
        headers = dict(req.headers)
        headers.update(credential_headers(self.state))
        if req.protected and self.state.credential_mode is not CredentialMode.SESSION_COOKIE:
            ctx = await self.csrf.obtain_csrf_context()
            # token may have changed while fetching the CSRF pair
            headers.update(credential_headers(self.state))
            headers["X-CSRFToken"] = ctx.token
            if ctx.session_cookie_fragment:
                headers["Cookie"] = f"session={ctx.session_cookie_fragment}"
        return headers

    async def send(self, req: RequestDescriptor) -> Response:
        """
        Send ``req`` and return the successful response.

        Raises
        ------
        SupersetUpstreamError
            For any final status >= 400 (``SupersetAuthorizationError`` on 401)
        TransportError
            If no response was received
        """
        if not req.is_login:
            await self.refresher.ensure_authenticated()

        state = RequestState.INITIAL
        headers = await self._headers(req)

        while state is not RequestState.DONE:
            r = await self.transport.send(
                req.method, req.path, params=req.params, json=req.json, headers=headers
            )

            if r.status_code != 401 or req.is_login or state is RequestState.RETRIED:
                state = RequestState.DONE
                continue

            original = error_from_response(r)
            try:
                await self.refresher.refresh()
                headers = await self._headers(req)
            except SupersetError as e:
                logger.warning(
                    "Re-authentication after 401 on %s %s failed: %s", req.method, req.path, e
                )
                self.state.clear()
                raise original from e

            logger.debug("Retrying %s %s with refreshed credentials", req.method, req.path)
            state = RequestState.RETRIED

        if r.status_code >= 400:
            raise error_from_response(r)
        return r
