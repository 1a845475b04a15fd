"""Shared fixtures: a scripted Veeam API behind httpx.MockTransport."""

from __future__ import annotations

from typing import Any, Union
from urllib.parse import parse_qs

import httpx
import pytest

from core.client import VeeamClient
from core.models import Credential, TokenState

BASE_URL = "https://vbr.test:9419"
TOKEN_URL = BASE_URL + "/api/v3/token"

Scripted = Union[httpx.Response, Exception]


class FakeClock:
    """Epoch-seconds clock the tests move by hand."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class Upstream:
    """Serves queued responses for the token endpoint and for resource GETs.

    Every request is recorded.  A queued exception is raised instead of
    returning a response.  Running out of queued responses fails the test.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.token_responses: list[Scripted] = []
        self.get_responses: list[Scripted] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.token_responses if request.url.path == "/api/v3/token" else self.get_responses
        if not queue:
            raise AssertionError(f"unexpected request: {request.method} {request.url}")
        scripted = queue.pop(0)
        if isinstance(scripted, Exception):
            raise scripted
        return scripted

    @property
    def token_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == "/api/v3/token"]

    @property
    def get_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "GET"]


def token_response(
    access: str = "A", refresh: Any = "R", expires_in: Any = 600, status: int = 200
) -> httpx.Response:
    body: dict[str, Any] = {"access_token": access}
    if refresh is not None:
        body["refresh_token"] = refresh
    if expires_in is not None:
        body["expires_in"] = expires_in
    return httpx.Response(status, json=body)


def form(request: httpx.Request) -> dict[str, str]:
    """Decode a form-encoded token request body."""
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def upstream() -> Upstream:
    return Upstream()


@pytest.fixture
def http(upstream: Upstream) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))


@pytest.fixture
def credential() -> Credential:
    return Credential(BASE_URL + "/", "admin", "s3cret")


@pytest.fixture
def fresh_state(clock: FakeClock) -> TokenState:
    """A token that won't need refreshing for an hour."""
    return TokenState(access_token="A", refresh_token="R", expires_at=clock.now + 3600)


@pytest.fixture
def client(credential, http, fresh_state, clock) -> VeeamClient:
    return VeeamClient(credential, http, state=fresh_state, clock=clock, page_delay=0)
