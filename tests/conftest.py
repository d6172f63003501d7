"""
Pytest configuration and shared fixtures.
"""

import asyncio
import json
from http import HTTPStatus
from typing import Any, Callable, Dict, List, Optional

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from superset_sdk.core.client import SupersetClient
from superset_sdk.core.session import CSRF_PATH, LOGIN_PATH, SupersetAuth, SupersetConfig


BASE_URL = "http://superset.test"


def _make_response(
    status: int = 200,
    json_body: Any = None,
    text: Optional[str] = None,
    content_type: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
    url: str = BASE_URL + "/api/v1/test",
) -> requests.Response:
    r = requests.Response()
    r.status_code = status
    try:
        r.reason = HTTPStatus(status).phrase
    except ValueError:
        r.reason = ""
    r.url = url
    r.encoding = "utf-8"
    if json_body is not None:
        r._content = json.dumps(json_body).encode("utf-8")
        ctype = content_type or "application/json"
    else:
        r._content = (text or "").encode("utf-8")
        ctype = content_type or "text/plain"
    r.headers = CaseInsensitiveDict({"Content-Type": ctype, **(headers or {})})
    return r


@pytest.fixture
def make_response() -> Callable[..., requests.Response]:
    """Factory for real ``requests.Response`` objects."""
    return _make_response


class FakeSuperset:
    """
    In-process stand-in for the transport's ``send`` coroutine.

    - login issues token-1, token-2, ... (or ``login_status`` if set)
    - csrf issues csrf-N with a matching ``session=sess-N`` cookie, and
      like every other path it needs a valid credential
    - a valid credential is the current token (or any cookie); routes
      can be overridden with a response or a callable
    """

    def __init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []
        self.login_count = 0
        self.csrf_count = 0
        self.login_status = 200
        self.login_gate: Optional[asyncio.Event] = None
        self.valid_token: Optional[str] = None
        self.routes: Dict[tuple, Any] = {}

    def expire(self) -> None:
        self.valid_token = None

    def calls_to(self, path: str) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["path"] == path]

    def issue_csrf(self) -> requests.Response:
        self.csrf_count += 1
        n = self.csrf_count
        return _make_response(
            200,
            {"result": f"csrf-{n}"},
            headers={"Set-Cookie": f"session=sess-{n}; HttpOnly; Path=/"},
            url=BASE_URL + CSRF_PATH,
        )

    async def send(self, method, path, *, params=None, json=None, headers=None):
        # yield like a real network call so concurrent requests interleave
        await asyncio.sleep(0)
        headers = dict(headers or {})
        call = {"method": method, "path": path, "params": params, "json": json, "headers": headers}
        self.calls.append(call)

        if path == LOGIN_PATH:
            self.login_count += 1
            if self.login_gate is not None:
                await self.login_gate.wait()
            if self.login_status != 200:
                return _make_response(self.login_status, {"message": "Not authorized"}, url=BASE_URL + path)
            self.valid_token = f"token-{self.login_count}"
            return _make_response(200, {"access_token": self.valid_token}, url=BASE_URL + path)

        authorized = "cookie" in headers or (
            self.valid_token is not None
            and headers.get("Authorization") == f"Bearer {self.valid_token}"
        )
        route = self.routes.get((method, path))
        if callable(route):
            return route(call, authorized)
        if not authorized:
            return _make_response(401, {"msg": "Token has expired"}, url=BASE_URL + path)
        if path == CSRF_PATH:
            return self.issue_csrf()
        if route is not None:
            return route
        return _make_response(200, {"result": "ok"}, url=BASE_URL + path)


@pytest.fixture
def fake() -> FakeSuperset:
    return FakeSuperset()


def _client(auth: SupersetAuth, fake: FakeSuperset, **kwargs: Any) -> SupersetClient:
    client = SupersetClient(SupersetConfig(base_url=BASE_URL, auth=auth, **kwargs))
    client.transport.send = fake.send
    return client


@pytest.fixture
def password_client(fake):
    """Client in password mode wired to the fake server."""
    client = _client(SupersetAuth("password", ("admin", "secret")), fake)
    yield client
    client.close()


@pytest.fixture
def token_client(fake):
    fake.valid_token = "external-token"
    client = _client(SupersetAuth("bearer", "external-token"), fake)
    yield client
    client.close()


@pytest.fixture
def cookie_client(fake):
    client = _client(SupersetAuth("cookie", "session=sso-cookie"), fake)
    yield client
    client.close()


@pytest.fixture
def read_only_client(fake):
    client = _client(SupersetAuth("password", ("admin", "secret")), fake, read_only=True)
    yield client
    client.close()
