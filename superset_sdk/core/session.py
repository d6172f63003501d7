"""
superset_sdk.core.session - Superset HTTP Session Management
=============================================================

Low-level session handling for the Superset REST API with:
- Password, bearer token and session-cookie credentials
- Automatic retry with exponential backoff for idempotent calls
- Strict content-type aware body decoding
- Translation of transport failures into SDK errors
"""

from __future__ import annotations

import asyncio
import enum
import logging
import re
import time
from http.cookiejar import DefaultCookiePolicy
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

import requests
from requests import Response, Session
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from superset_sdk.core.errors import (
    ConfigurationError,
    SupersetAuthorizationError,
    SupersetUpstreamError,
    TransportError,
)


LOGIN_PATH = "/api/v1/security/login"
CSRF_PATH = "/api/v1/security/csrf_token/"

_BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})

# Splits a folded Set-Cookie header without breaking on "Expires=Wed, 21 Oct".
_COOKIE_SPLIT = re.compile(r",\s*(?=[^;,=\s]+=)")


@dataclass
class SupersetAuth:
    """
    Authentication configuration for Superset.

    Parameters
    ----------
    kind : str
        One of "password", "bearer" or "cookie"
    value : tuple or str
        For password: (username, password) tuple
        For bearer: access token string
        For cookie: raw ``Cookie`` header value

    Examples
    --------
    >>> auth = SupersetAuth("password", ("admin", "secret"))
    >>> auth = SupersetAuth("bearer", "eyJ...")
    >>> auth = SupersetAuth("cookie", "session=abc123")
    """
    kind: str  # "password" | "bearer" | "cookie"
    value: Union[Tuple[str, str], str]


@dataclass
class SupersetConfig:
    """
    Connection configuration for a Superset instance.

    Parameters
    ----------
    base_url : str
        Server address, e.g. "http://localhost:8088"
    auth : SupersetAuth
        Credential material
    auth_provider : str
        Provider identifier forwarded to the login endpoint (default: "db")
    read_only : bool
        Reject write-intent SQL client-side
    timeout : float
        Request timeout in seconds (default: 120.0)
    retries : int
        Retry attempts for idempotent calls (default: 3)
    backoff : float
        Backoff factor for retries (default: 0.5)
    verify : bool or str
        SSL verification (True, False, or path to CA bundle)
    user_agent : str
        User-Agent header value
    """
    base_url: str
    auth: SupersetAuth
    auth_provider: str = "db"
    read_only: bool = False
    timeout: float = 120.0
    retries: int = 3
    backoff: float = 0.5
    verify: Union[bool, str] = True
    user_agent: str = "superset-sdk/0.1"


class CredentialMode(enum.Enum):
    PASSWORD = "password"
    BEARER_TOKEN = "bearer"
    SESSION_COOKIE = "cookie"


@dataclass
class SessionState:
    """
    Credential material and authenticated flag for one client.

    Only the authenticator and the refresh coordinator write to it.
    """
    base_url: str
    credential_mode: CredentialMode
    bearer_token: Optional[str] = None
    external_session_cookie: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    provider: str = "db"
    is_authenticated: bool = False

    @classmethod
    def from_config(cls, cfg: SupersetConfig) -> "SessionState":
        """Pick the credential mode: cookie > token > password."""
        kind = cfg.auth.kind
        base = cfg.base_url.rstrip("/")
        if kind == "cookie":
            return cls(base, CredentialMode.SESSION_COOKIE,
                       external_session_cookie=str(cfg.auth.value or "") or None,
                       provider=cfg.auth_provider)
        if kind == "bearer":
            return cls(base, CredentialMode.BEARER_TOKEN,
                       bearer_token=str(cfg.auth.value or "") or None,
                       provider=cfg.auth_provider)
        if kind == "password":
            user, password = cfg.auth.value  # type: ignore[misc]
            return cls(base, CredentialMode.PASSWORD,
                       username=user or None, password=password or None,
                       provider=cfg.auth_provider)
        raise ConfigurationError("auth.kind must be 'password', 'bearer' or 'cookie'")

    @property
    def has_credential(self) -> bool:
        if self.credential_mode is CredentialMode.SESSION_COOKIE:
            return bool(self.external_session_cookie)
        if self.credential_mode is CredentialMode.BEARER_TOKEN:
            return bool(self.bearer_token)
        return bool(self.bearer_token) or bool(self.username and self.password)

    def mark_authenticated(self) -> None:
        if not self.has_credential:
            raise ConfigurationError("no usable credential")
        self.is_authenticated = True

    def invalidate(self) -> None:
        self.is_authenticated = False

    def clear(self) -> None:
        """Drop the bearer token so the next call cannot reuse it."""
        self.bearer_token = None
        self.is_authenticated = False


@dataclass(frozen=True)
class CsrfContext:
    """Anti-forgery token plus the session cookie issued alongside it."""
    token: str
    session_cookie_fragment: str = ""


# ---------------- response helpers ----------------

def _content_type(r: Response) -> str:
    return (r.headers.get("Content-Type") or "").lower()


def decode_body(r: Response) -> Any:
    """
    Decode a response body according to its declared content type.

    ``application/json`` is parsed (raw bytes if parsing fails); anything
    else is returned as text.
    """
    if "application/json" in _content_type(r):
        try:
            return r.json()
        except ValueError:
            return r.content
    return r.text


def error_from_response(r: Response) -> SupersetUpstreamError:
    """Build the upstream error for a failed response (401 gets its own type)."""
    cls = SupersetAuthorizationError if r.status_code == 401 else SupersetUpstreamError
    return cls(
        r.status_code,
        r.reason or "",
        r.url or "",
        content_type=r.headers.get("Content-Type", ""),
        data=decode_body(r),
        headers=dict(r.headers),
    )


def set_cookie_entries(r: Response) -> List[str]:
    """Return each ``Set-Cookie`` header entry separately."""
    raw_headers = getattr(getattr(r, "raw", None), "headers", None)
    if raw_headers is not None and hasattr(raw_headers, "getlist"):
        entries = raw_headers.getlist("Set-Cookie")
        if entries:
            return list(entries)
    folded = r.headers.get("Set-Cookie")
    if not folded:
        return []
    return [c.strip() for c in _COOKIE_SPLIT.split(folded) if c.strip()]


def extract_session_cookie(r: Response) -> str:
    """
    Pull the ``session`` cookie value out of a response.

    >>> # Set-Cookie: session=abc.def; HttpOnly; Path=/
    >>> # -> "abc.def"
    """
    for entry in set_cookie_entries(r):
        if entry.startswith("session="):
            return entry.split(";", 1)[0][len("session="):]
    return ""


class SupersetSession:
    """
    Low-level HTTP transport for the Superset REST API.

    Wraps a pooled ``requests.Session``; blocking calls are pushed to a
    worker thread by :meth:`send` so the event loop keeps running while a
    request is in flight. Credentials are never attached here; the
    request pipeline decides which headers go on each call.

    Parameters
    ----------
    cfg : SupersetConfig
        Connection configuration

    Examples
    --------
    >>> with SupersetSession(cfg) as sess:
    ...     r = sess.request("GET", "/api/v1/database/")
    """

    def __init__(self, cfg: SupersetConfig) -> None:
        self.cfg = cfg
        self.base = cfg.base_url.rstrip("/")
        self.timeout = float(cfg.timeout)
        self.verify = cfg.verify
        self.logger = logging.getLogger("superset_sdk.session")

        self.session = self._build_session()

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()

    def __enter__(self) -> "SupersetSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _build_session(self) -> Session:
        sess = requests.Session()
        sess.headers.update({
            "Accept": "application/json",
            "User-Agent": self.cfg.user_agent,
        })
        # session cookies travel only as explicit per-request headers
        sess.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))

        # 401 is handled by the pipeline, never by urllib3
        retry = Retry(
            total=self.cfg.retries,
            backoff_factor=self.cfg.backoff,
            status_forcelist=(429, 502, 503, 504),
            allowed_methods=frozenset({"GET", "HEAD", "OPTIONS"}),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry, pool_connections=10, pool_maxsize=20)
        sess.mount("https://", adapter)
        sess.mount("http://", adapter)
        return sess

    def url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base}/{path.lstrip('/')}"

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Response:
        """
        Send one HTTP request and return the response without raising on status.

        Raises
        ------
        TransportError
            If no response was received
        """
        method = method.upper()
        url = self.url(path)
        hdrs: Dict[str, str] = dict(headers or {})
        if json is not None and method in _BODY_METHODS:
            hdrs["Content-Type"] = "application/json"

        t0 = time.perf_counter()
        try:
            r = self.session.request(
                method=method,
                url=url,
                params=params,
                json=json,
                headers=hdrs,
                timeout=self.timeout,
                verify=self.verify,
            )
        except requests.RequestException as e:
            self.logger.debug("%s %s failed: %s", method, url, e)
            raise TransportError(type(e).__name__, str(e), url) from e

        dt = (time.perf_counter() - t0) * 1000.0
        self.logger.debug("%s %s %s %sms", method, url, r.status_code, round(dt, 1))

        ctype = _content_type(r)
        if "/api/" in url and "application/json" not in ctype:
            self.logger.warning(
                "API call returned non-JSON response: %s, Content-Type: %s", url, ctype
            )
        return r

    async def send(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Response:
        """Awaitable :meth:`request`; the blocking call runs in a worker thread."""
        return await asyncio.to_thread(
            self.request, method, path, params=params, json=json, headers=headers
        )
