"""Shared test fixtures."""

import httpx
import pytest
from fastapi.testclient import TestClient

from main import create_app
from request_manager import RequestManager
from tmdb_client import TMDbClient


class FakeClock:
    """Manually advanced replacement for time.monotonic."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class UpstreamRecorder:
    """Mock TMDb upstream that records every request it receives."""

    def __init__(self):
        self.requests = []
        self.routes = {}

    def add(self, path: str, status_code: int = 200, json=None, content: bytes = None, headers=None):
        self.routes[path] = (status_code, json, content, headers or {})

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        target = request.url.raw_path.decode()
        if target not in self.routes:
            return httpx.Response(404, json={"status_message": "The resource you requested could not be found."})
        status_code, json, content, headers = self.routes[target]
        if content is not None:
            return httpx.Response(status_code, content=content, headers=headers)
        return httpx.Response(status_code, json=json, headers=headers)

    def count(self, path: str) -> int:
        return sum(1 for r in self.requests if r.url.raw_path.decode() == path)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def upstream():
    return UpstreamRecorder()


@pytest.fixture
def tmdb(upstream):
    return TMDbClient(
        base_url="https://api.test",
        image_base_url="https://image.test",
        default_token=None,
        transport=httpx.MockTransport(upstream),
    )


@pytest.fixture
def manager():
    return RequestManager(capacity=10, ttl=600)


@pytest.fixture
def test_app(manager, tmdb):
    return create_app(manager=manager, tmdb=tmdb, include_auth=False)


@pytest.fixture
def client(test_app):
    with TestClient(test_app) as test_client:
        yield test_client

