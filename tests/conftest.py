# tests/conftest.py
import copy

import pytest
from asgi_lifespan import LifespanManager
from httpx import ASGITransport, AsyncClient

from ewaste.core.events import MemoryEventSink
from ewaste.core.security import Authenticator, get_authenticator
from ewaste.deps import get_event_sink, get_pickup_repo, get_user_repo
from ewaste.main import app
from ewaste.models.schemas import Principal
from ewaste.repos.inmemory import InMemoryPickupRepo, InMemoryUserRepo

PICKUP_PAYLOAD = {
    "items": [{"category": "computer", "quantity": 1, "description": "Old laptop"}],
    "scheduled_date": "2026-11-02",
    "scheduled_time": "10:00",
    "address": {
        "street": "12 Elm Street",
        "city": "Springfield",
        "state": "IL",
        "zip_code": "62701",
        "country": "US",
    },
}


@pytest.fixture(scope="session")
def anyio_backend():
    # keep AnyIO on asyncio for the whole test session
    return "asyncio"


@pytest.fixture
def pickup_payload():
    return copy.deepcopy(PICKUP_PAYLOAD)


@pytest.fixture
def requester():
    return Principal(id="R1", role="requester")


@pytest.fixture
def other_requester():
    return Principal(id="R2", role="requester")


@pytest.fixture
def agent():
    return Principal(id="A1", role="agent")


@pytest.fixture
def other_agent():
    return Principal(id="A2", role="agent")


@pytest.fixture
def admin():
    return Principal(id="ADM", role="admin")


@pytest.fixture
def authenticator():
    return Authenticator("test-secret", "HS256", ttl_minutes=5)


@pytest.fixture
def pickup_repo():
    return InMemoryPickupRepo()


@pytest.fixture
def user_repo():
    return InMemoryUserRepo()


@pytest.fixture
def sink():
    return MemoryEventSink()


@pytest.fixture
def bearer(authenticator):
    def _headers(principal: Principal) -> dict:
        return {"Authorization": f"Bearer {authenticator.issue(principal.id, principal.role)}"}
    return _headers


@pytest.fixture
async def test_client(pickup_repo, user_repo, sink, authenticator):
    app.dependency_overrides[get_pickup_repo] = lambda: pickup_repo
    app.dependency_overrides[get_user_repo] = lambda: user_repo
    app.dependency_overrides[get_event_sink] = lambda: sink
    app.dependency_overrides[get_authenticator] = lambda: authenticator
    try:
        async with LifespanManager(app):
            transport = ASGITransport(app=app, raise_app_exceptions=True)
            async with AsyncClient(transport=transport, base_url="http://test") as ac:
                yield ac
    finally:
        app.dependency_overrides.clear()
