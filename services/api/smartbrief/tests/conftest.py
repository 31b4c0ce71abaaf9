import pytest
from fastapi.testclient import TestClient

from fakes import FakeClient, FakeFetcher, make_pipeline
from smartbrief.main import app
from smartbrief.routers.briefs import get_pipeline, get_rate_limiter
from smartbrief.storage import MemoryCounterStore, RateLimiter


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def fake_fetcher():
    return FakeFetcher()


@pytest.fixture
def rate_limiter():
    return RateLimiter(MemoryCounterStore(), limit=100)


@pytest.fixture
def client(fake_fetcher, fake_client, rate_limiter):
    """TestClient whose pipeline runs against fakes."""
    app.dependency_overrides[get_pipeline] = lambda: make_pipeline(fetcher=fake_fetcher, client=fake_client)
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    yield TestClient(app)
    app.dependency_overrides.clear()
