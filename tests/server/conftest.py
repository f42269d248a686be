"""Pytest fixtures for profile relay server tests."""

import json
from collections.abc import AsyncIterator, Callable

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from profilerelay.server.config import UpstreamConfig
from profilerelay.server.main import app
from profilerelay.server.upstream import UpstreamClient

Handler = Callable[[httpx.Request], httpx.Response]


class FakeUpstream:
    """Scripted upstream store that records every request it receives."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responses: list[httpx.Response | Handler] = []

    def queue(self, status_code: int, body: dict | None = None, text: str | None = None) -> None:
        if body is not None:
            self.responses.append(httpx.Response(status_code, json=body))
        else:
            self.responses.append(httpx.Response(status_code, text=text or ""))

    def queue_connect_error(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        self.responses.append(refuse)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"Unexpected upstream call: {request.method} {request.url}")
        response = self.responses.pop(0)
        if callable(response):
            return response(request)
        return response

    def body(self, index: int = 0) -> dict:
        return json.loads(self.requests[index].content)


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio backend for anyio."""
    return "asyncio"


@pytest.fixture
def fake_upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest_asyncio.fixture
async def upstream(fake_upstream: FakeUpstream) -> AsyncIterator[UpstreamClient]:
    """Upstream client wired to the fake store."""
    client = UpstreamClient(
        UpstreamConfig(api_key="pk_test", base_url="https://upstream.test/api"),
        transport=httpx.MockTransport(fake_upstream.handle),
    )
    yield client
    await client.close()


@pytest_asyncio.fixture
async def client(upstream: UpstreamClient) -> AsyncIterator[AsyncClient]:
    """Create an async HTTP client for testing."""
    app.state.upstream = upstream

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
