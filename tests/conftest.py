import os
import tempfile
import pytest
import httpx
from app.cache import db as cache_db
from app.services import resolve

@pytest.fixture(autouse=True)
def setup_test_environment():
    """Point the cache at a temporary database for every test"""
    original_db_path = cache_db.DATABASE_PATH
    original_resolver = resolve._resolver

    temp_db = tempfile.NamedTemporaryFile(suffix='.sqlite', delete=False)
    temp_db_path = temp_db.name
    temp_db.close()

    cache_db.DATABASE_PATH = temp_db_path
    resolve._resolver = None
    cache_db.init_db()

    yield

    cache_db.DATABASE_PATH = original_db_path
    resolve._resolver = original_resolver

    try:
        if os.path.exists(temp_db_path):
            os.unlink(temp_db_path)
    except OSError:
        # If cleanup fails, it's not critical for tests
        pass


class FakeWeb:
    """Route table for httpx.MockTransport that records every request"""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, url: str, status_code: int = 200, **kwargs):
        """Register a response; kwargs go to httpx.Response (content, headers, json...)"""
        self.routes[url] = (status_code, kwargs)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        if key not in self.routes:
            return httpx.Response(404, text="not found")
        status_code, kwargs = self.routes[key]
        return httpx.Response(status_code, **kwargs)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def hosts(self) -> list:
        return [r.url.host for r in self.requests]


@pytest.fixture
def web():
    return FakeWeb()


@pytest.fixture
def resolver(web):
    return resolve.build_resolver(timeout=2.0, transport=web.transport)
