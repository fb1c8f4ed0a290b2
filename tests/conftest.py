"""Pytest fixtures and shared test configuration.

Provides reusable fixtures for unit and integration tests.

Fixtures:
    - fake_backend: In-process conversation backend (both protocol variants)
    - client_config / legacy_config: Client configuration per protocol
    - clock: Controllable time source with a matching async sleep
    - store: Session store over in-memory storage, driven by the clock
    - api_client / legacy_client: Transport clients wired to the fake backend
    - async_client: HTTPX client for the host application

Async fixtures close their clients on teardown.
"""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from tests.fake_backend import FakeBackend
from tests.fakes import FakeClock
from wuffchat.api import app
from wuffchat.client import ApiClient, ClientConfig
from wuffchat.session import MappingStorage, SessionStore


@pytest.fixture
def clock() -> FakeClock:
    """Return a fresh fake clock."""
    return FakeClock()


@pytest.fixture
def storage() -> MappingStorage:
    """Return empty in-memory session storage."""
    return MappingStorage({})


@pytest.fixture
def store(storage: MappingStorage, clock: FakeClock) -> SessionStore:
    """Return a session store driven by the fake clock."""
    return SessionStore(storage, clock=clock)


@pytest.fixture
def fake_backend() -> FakeBackend:
    """Return a fresh fake conversation backend."""
    return FakeBackend()


@pytest.fixture
def client_config() -> ClientConfig:
    """Return configuration for the current (v3) protocol."""
    return ClientConfig(api_url="http://backend.test", api_key="test-key", api_version="v3")


@pytest.fixture
def legacy_config() -> ClientConfig:
    """Return configuration for the legacy (v2) protocol."""
    return ClientConfig(api_url="http://backend.test", api_key=None, api_version="v2")


@pytest.fixture
async def api_client(
    fake_backend: FakeBackend, client_config: ClientConfig, store: SessionStore
) -> AsyncGenerator[ApiClient]:
    """Create a v3 transport client talking to the fake backend.

    Yields:
        ApiClient wired through ASGITransport.
    """
    client = ApiClient(client_config, store, transport=ASGITransport(app=fake_backend.app))
    yield client
    await client.aclose()


@pytest.fixture
async def legacy_client(
    fake_backend: FakeBackend, legacy_config: ClientConfig, store: SessionStore
) -> AsyncGenerator[ApiClient]:
    """Create a v2 transport client talking to the fake backend."""
    client = ApiClient(legacy_config, store, transport=ASGITransport(app=fake_backend.app))
    yield client
    await client.aclose()


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for the host application.

    Yields:
        Configured AsyncClient for making test requests.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
