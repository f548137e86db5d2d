"""API test fixtures — in-memory SQL store, fake sender, ASGI client.

Invariants:
    - Every test gets a fresh in-memory SQLite database and runtime
    - The lifespan is bypassed: fixtures install runtime and db_manager directly
    - Route ticks use the wall clock, so events are placed relative to now
"""

import pytest
from httpx import ASGITransport, AsyncClient

import app.infrastructure.database as db_module
from app.config import Settings
from app.infrastructure.database import DatabaseSessionManager
from app.infrastructure.kv_store import SqlKeyValueStore
from app.infrastructure.tick_lock import SqlTickLock
from app.main import app
from app.services.reminder_runtime import build_runtime
from tests.fakes import FakeSender


@pytest.fixture
async def manager():
    manager = DatabaseSessionManager("sqlite+aiosqlite:///:memory:")
    await manager.create_schema()
    yield manager
    await manager.dispose()


@pytest.fixture
def api_sender():
    return FakeSender()


@pytest.fixture
async def runtime(manager, api_sender):
    runtime = build_runtime(
        Settings(_env_file=None), SqlKeyValueStore(manager), sender=api_sender,
        tick_lock=SqlTickLock(manager),
    )
    yield runtime
    await runtime.aclose()


@pytest.fixture
async def client(manager, runtime):
    original_manager = db_module.db_manager
    db_module.db_manager = manager
    app.state.runtime = runtime

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    db_module.db_manager = original_manager
