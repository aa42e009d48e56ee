"""
Current Visit API: Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── mock_store: AsyncMock standing in for VisitStore (service tests)
    ├── fixed_clock: deterministic epoch-millisecond clock
    ├── visit_store: real VisitStore on a temporary SQLite file
    └── test_client: HTTPX AsyncClient talking to create_app(store=visit_store)
"""

import os
import tempfile
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Override settings for testing BEFORE any visitapi imports, so the module-level
# app in visitapi.main never points at a production database.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(
    tempfile.mkdtemp(prefix="visitapi_test_"), "default.db"
)
os.environ["LOG_LEVEL"] = "WARNING"

from visitapi.main import create_app  # noqa: E402
from visitapi.services.visit_store import VisitStore  # noqa: E402


class FixedClock:
    """Epoch-millisecond clock that advances by `step` on every call."""

    def __init__(self, start: int = 1_700_000_000_000, step: int = 1000):
        self.now = start
        self.step = step

    def __call__(self) -> int:
        current = self.now
        self.now += self.step
        return current


@pytest.fixture
def fixed_clock():
    return FixedClock()


@pytest.fixture
def mock_store():
    """
    Provides a mock VisitStore.

    Usage:
        mock_store.recent_names.return_value = ["Cafe Rio"]
        visits = await VisitService(mock_store).search("u1", "cafe")
    """
    store = AsyncMock(spec=VisitStore)
    store.insert = AsyncMock(side_effect=lambda visit: visit.model_copy(update={"visit_time": 1}))
    store.recent_names = AsyncMock(return_value=[])
    store.visits_of = AsyncMock(return_value=[])
    store.by_id = AsyncMock(return_value=None)
    return store


@pytest_asyncio.fixture
async def visit_store(tmp_path, fixed_clock):
    """
    A VisitStore backed by a fresh SQLite file with the schema created.

    The engine is disposed after the test so the file handle is released.
    """
    store = VisitStore(f"sqlite+aiosqlite:///{tmp_path / 'visits.db'}", clock=fixed_clock)
    await store.create_schema()
    yield store
    await store.dispose()


@pytest_asyncio.fixture
async def test_client(visit_store):
    """
    HTTPX AsyncClient routed straight into a FastAPI app built on visit_store.

    Usage:
        async def test_help(test_client):
            response = await test_client.get("/current")
            assert response.status_code == 200
    """
    app = create_app(store=visit_store)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
