"""
superset_sdk.core.auth - Login, refresh and anti-forgery tokens
================================================================

- Authenticator: establishes a usable credential on the SessionState
- SingleFlight: collapses concurrent calls into one shared execution
- RefreshCoordinator: at most one re-authentication in flight per client
- CsrfProvider: fetches a fresh CSRF token + session cookie per request
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from requests import Response

from superset_sdk.core.diagnostics import format_auth_error, get_error_message
from superset_sdk.core.errors import (
    AuthenticationError,
    ConfigurationError,
    CsrfTokenError,
    SupersetError,
)
from superset_sdk.core.session import (
    CSRF_PATH,
    LOGIN_PATH,
    CredentialMode,
    CsrfContext,
    SessionState,
    SupersetSession,
    decode_body,
    error_from_response,
    extract_session_cookie,
)


logger = logging.getLogger("superset_sdk.auth")


def credential_headers(state: SessionState) -> Dict[str, str]:
    """Headers proving the current session (cookie mode wins over bearer)."""
    if state.credential_mode is CredentialMode.SESSION_COOKIE:
        return {"cookie": state.external_session_cookie or ""}
    if state.bearer_token:
        return {"Authorization": f"Bearer {state.bearer_token}"}
    return {}


class Authenticator:
    """
    Turns configured credential material into an authenticated session.

    Cookie and bearer-token modes become authenticated without a network
    call. Password mode logs in against the security endpoint and keeps the
    returned access token on the session state.
    """

    def __init__(self, transport: SupersetSession, state: SessionState) -> None:
        self.transport = transport
        self.state = state

    async def authenticate(self) -> None:
        state = self.state

        if state.credential_mode is CredentialMode.SESSION_COOKIE:
            state.mark_authenticated()
            return

        if state.credential_mode is CredentialMode.BEARER_TOKEN:
            if not state.bearer_token:
                raise ConfigurationError(
                    "no usable credential: the access token was rejected and cleared"
                )
            state.mark_authenticated()
            return

        if not (state.username and state.password):
            raise ConfigurationError(
                "no usable credential: username and password, access token, "
                "or session cookie required"
            )

        state.bearer_token = None
        payload = {
            "username": state.username,
            "password": state.password,
            "provider": state.provider or "db",
            "refresh": True,
        }
        try:
            r = await self.transport.send("POST", LOGIN_PATH, json=payload)
            if r.status_code >= 400:
                raise error_from_response(r)
        except SupersetError as e:
            message = format_auth_error(e)
            logger.error("Authentication failed: %s", message)
            raise AuthenticationError(message) from e

        body = decode_body(r)
        token = body.get("access_token") if isinstance(body, dict) else None
        if not token:
            raise AuthenticationError("Authentication Error\n\nLogin response did not include an access_token\n")

        state.bearer_token = token
        state.mark_authenticated()
        logger.debug("Logged in to %s as %s", state.base_url, state.username)


class SingleFlight:
    """
    Run at most one instance of an async operation at a time.

    The first caller (the leader) executes the operation; callers arriving
    while it is running await the same future and receive the same result
    or exception. The pending future is published and cleared without an
    intervening await, so no caller can see one without the other.
    """

    def __init__(self) -> None:
        self._pending: Optional[asyncio.Future] = None
        self.waiters = 0

    @property
    def in_progress(self) -> bool:
        return self._pending is not None

    async def run(self, fn: Callable[[], Awaitable[Any]]) -> Any:
        if self._pending is not None:
            self.waiters += 1
            try:
                return await asyncio.shield(self._pending)
            finally:
                self.waiters -= 1

        fut = asyncio.get_running_loop().create_future()
        self._pending = fut
        try:
            result = await fn()
        except asyncio.CancelledError:
            self._pending = None
            fut.cancel()
            raise
        except Exception as e:
            self._pending = None
            fut.set_exception(e)
            # mark retrieved; followers (if any) still receive it
            fut.exception()
            raise
        self._pending = None
        fut.set_result(result)
        return result


class RefreshCoordinator:
    """
    Serializes re-authentication for one client.

    ``refresh()`` forces a clean login; ``ensure_authenticated()`` logs in
    only when the session is not yet authenticated. Both share a single
    flight, so a refresh already running satisfies either call.
    """

    def __init__(self, authenticator: Authenticator) -> None:
        self.authenticator = authenticator
        self.state = authenticator.state
        self.flight = SingleFlight()

    @property
    def in_progress(self) -> bool:
        return self.flight.in_progress

    async def _reauthenticate(self) -> None:
        logger.info("Refreshing credentials for %s", self.state.base_url)
        self.state.invalidate()
        await self.authenticator.authenticate()

    async def refresh(self) -> None:
        await self.flight.run(self._reauthenticate)

    async def ensure_authenticated(self) -> None:
        if self.state.is_authenticated:
            return
        await self.flight.run(self.authenticator.authenticate)


class CsrfProvider:
    """
    Fetches a CSRF token for exactly one protected request.

    Nothing is cached: Superset may rotate the session cookie on every
    token fetch, so each protected request gets its own fetch. A 401 on the
    fetch itself gets the same single refresh-and-retry as any other call.
    """

    def __init__(self, transport: SupersetSession, refresher: RefreshCoordinator) -> None:
        self.transport = transport
        self.refresher = refresher

    async def _fetch(self) -> Response:
        return await self.transport.send(
            "GET", CSRF_PATH, headers=credential_headers(self.refresher.state)
        )

    async def obtain_csrf_context(self) -> CsrfContext:
        await self.refresher.ensure_authenticated()
        try:
            r = await self._fetch()
            if r.status_code == 401:
                logger.debug("CSRF fetch rejected with 401, refreshing credentials")
                try:
                    await self.refresher.refresh()
                except SupersetError:
                    self.refresher.state.clear()
                    raise
                r = await self._fetch()
            if r.status_code >= 400:
                raise error_from_response(r)
            body = decode_body(r)
            token = body.get("result") if isinstance(body, dict) else None
            if not token:
                raise CsrfTokenError(f"no 'result' in csrf response: {body!r}"[:500])
        except SupersetError as e:
            raise CsrfTokenError(
                f"Failed to obtain anti-forgery token: {get_error_message(e)}"
            ) from e

        return CsrfContext(token=str(token), session_cookie_fragment=extract_session_cookie(r))
