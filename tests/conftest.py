import os
import tempfile

os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="projector-test-"))

import httpx
import pytest
from fastapi.testclient import TestClient

from app.dependencies import get_profile_store, get_upstream_service
from app.main import app
from app.mock_upstream import mock_app
from app.services.profile_store import JsonFileStore
from app.services.upstream_cache import UpstreamDataService
from tests.helpers import UPSTREAM_URL, FakeClock, ScriptedUpstream


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scripted_upstream() -> ScriptedUpstream:
    return ScriptedUpstream()


@pytest.fixture
def upstream_service(clock, scripted_upstream) -> UpstreamDataService:
    return UpstreamDataService(
        UPSTREAM_URL,
        cache_ttl_seconds=300,
        request_timeout_seconds=10,
        transport=httpx.MockTransport(scripted_upstream),
        clock=clock,
    )


@pytest.fixture
def mock_upstream_service(clock) -> UpstreamDataService:
    """Service talking to the in-process mock responder app."""
    return UpstreamDataService(
        UPSTREAM_URL,
        transport=httpx.ASGITransport(app=mock_app),
        clock=clock,
    )


@pytest.fixture
def store(tmp_path) -> JsonFileStore:
    return JsonFileStore(tmp_path)


@pytest.fixture
def client(store, upstream_service):
    app.dependency_overrides[get_profile_store] = lambda: store
    app.dependency_overrides[get_upstream_service] = lambda: upstream_service
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()
