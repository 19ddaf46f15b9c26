"""
Pytest configuration and fixtures for the home-game ledger tests.

Provides an in-memory MongoDB (mongomock-motor, no real MongoDB required),
a private snapshot broker per test, identity helpers, and an HTTP client
wired to the FastAPI app with every ``get_database`` reference patched.
"""

import asyncio
import os

# Set required env vars before any app imports
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-unit-tests-only")

import pytest
import pytest_asyncio
from mongomock_motor import AsyncMongoMockClient

from homegame.auth.jwt import create_access_token
from homegame.dal.subscriptions import SnapshotBroker
from homegame.models.user import Actor


@pytest.fixture
def anyio_backend():
    """Specify anyio backend for async tests."""
    return "asyncio"


@pytest_asyncio.fixture
async def test_db():
    """In-memory MongoDB mock database for unit tests.

    The database is ephemeral -- it disappears after each test.
    """
    client = AsyncMongoMockClient()
    db = client["homegame_test"]
    yield db
    client.close()


@pytest.fixture
def broker() -> SnapshotBroker:
    """A broker private to one test, so listeners never leak between tests."""
    return SnapshotBroker()


@pytest.fixture
def host() -> Actor:
    return Actor(user_id="host-1", display_name="Hannah")


@pytest.fixture
def alice() -> Actor:
    return Actor(user_id="user-alice", display_name="Alice")


@pytest.fixture
def bob() -> Actor:
    return Actor(user_id="user-bob", display_name="Bob")


def _auth_headers(user_id: str, name: str | None = None) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id, name)}"}


@pytest.fixture
def auth_headers():
    """Builds an Authorization header carrying an identity token."""
    return _auth_headers


async def _wait_until(predicate, timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.01)


@pytest.fixture
def wait_until():
    """Polls a condition until listener worker tasks have caught up."""
    return _wait_until


# Every module that imports get_database at module level.
_DB_MODULES = (
    "homegame.dal.database",
    "homegame.auth.dependencies",
    "homegame.routes.games",
    "homegame.routes.players",
    "homegame.routes.buy_ins",
    "homegame.routes.cash_outs",
    "homegame.routes.settlement",
    "homegame.routes.invites",
    "homegame.routes.stream",
    "homegame.routes.health",
    "homegame.tasks.invite_expiry",
)


@pytest_asyncio.fixture
async def mock_db():
    """In-memory database with all get_database refs patched to return it."""
    import importlib

    client = AsyncMongoMockClient()
    db = client["homegame_test"]

    modules = [importlib.import_module(name) for name in _DB_MODULES]
    originals = [module.get_database for module in modules]
    for module in modules:
        module.get_database = lambda: db

    yield db

    for module, original in zip(modules, originals):
        module.get_database = original
    client.close()


@pytest_asyncio.fixture
async def test_client(mock_db):
    """Async HTTP client wired to the FastAPI app with mocked db."""
    from httpx import ASGITransport, AsyncClient
    from homegame.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
