"""Service test fixtures — file-backed SQLite, fake clock, recording collaborators, API client.

Invariants:
    - Every test gets a fresh SQLite database file under tmp_path
    - The accumulator runs against the real DatabaseSessionManager.session scope
    - get_db dependency overridden and db_manager patched for the readiness probe
    - The clock only moves when a test advances it

Design Decisions:
    - File-backed SQLite over :memory:: each session gets its own connection, so
      overlapping writers exercise the revision compare-and-set for real
    - Recording publisher/alert hook instead of mocks: tests assert on what was
      handed over, not on call signatures
"""

import pytest
from httpx import ASGITransport, AsyncClient

import shiftledger.infrastructure.database as db_module
import shiftledger.models  # noqa: F401
from shiftledger.db.base import Base
from shiftledger.infrastructure.database import DatabaseSessionManager, get_db
from shiftledger.main import app
from shiftledger.services.production_accumulator import ProductionAccumulator
from shiftledger.services.production_poller import ProductionPoller
from tests.services.ledger_doubles import (
    SAO_PAULO, FakeClock, RecordingAlertHook, RecordingPublisher, Seeder,
)


@pytest.fixture
async def test_db_manager(tmp_path):
    manager = DatabaseSessionManager(
        f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}",
    )
    async with manager.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield manager
    await manager.dispose()


@pytest.fixture
def seed(test_db_manager):
    return Seeder(test_db_manager)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def alert_hook():
    return RecordingAlertHook()


@pytest.fixture
def accumulator(test_db_manager, publisher, alert_hook, clock):
    return ProductionAccumulator(
        session_scope=test_db_manager.session,
        publisher=publisher,
        alert_hook=alert_hook,
        clock=clock,
        facility_tz=SAO_PAULO,
    )


@pytest.fixture
async def client(test_db_manager, accumulator, publisher):
    """FastAPI test client wired to the test database and accumulator."""
    async def override_get_db():
        async with test_db_manager.session() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    original_manager = db_module.db_manager
    db_module.db_manager = test_db_manager
    app.state.poller = ProductionPoller(accumulator, interval_seconds=60.0)
    app.state.publisher = publisher

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
