"""Tick Locks — lease exclusivity, expiry takeover and owner-only release.

Invariants:
    - SQL lease runs on a fresh in-memory SQLite database per test
    - Expiry is driven by an injected clock, never by sleeping
"""

from datetime import timedelta

import pytest

from app.infrastructure.database import DatabaseSessionManager
from app.infrastructure.tick_lock import InMemoryTickLock, SqlTickLock
from tests.fakes import T0

TTL = timedelta(seconds=60)


class _Clock:
    def __init__(self):
        self.now = T0

    def __call__(self):
        return self.now


@pytest.fixture
async def manager():
    manager = DatabaseSessionManager("sqlite+aiosqlite:///:memory:")
    await manager.create_schema()
    yield manager
    await manager.dispose()


@pytest.fixture
def clock():
    return _Clock()


@pytest.fixture(params=["sql", "memory"])
def make_lock(request, manager, clock):
    """Locks built by one factory share the same lease."""
    if request.param == "sql":
        return lambda: SqlTickLock(manager, clock=clock)
    shared = InMemoryTickLock(clock=clock)
    return lambda: shared


async def test_second_owner_is_refused_while_lease_is_live(make_lock):
    api, cli = make_lock(), make_lock()
    assert await api.acquire("api-tick", TTL)
    assert not await cli.acquire("cli-tick", TTL)


async def test_owner_can_renew_its_own_lease(make_lock):
    lock = make_lock()
    assert await lock.acquire("api-tick", TTL)
    assert await lock.acquire("api-tick", TTL)


async def test_release_frees_the_lease(make_lock):
    api, cli = make_lock(), make_lock()
    await api.acquire("api-tick", TTL)
    await api.release("api-tick")
    assert await cli.acquire("cli-tick", TTL)


async def test_release_by_another_owner_is_ignored(make_lock):
    api, cli = make_lock(), make_lock()
    await api.acquire("api-tick", TTL)
    await cli.release("cli-tick")
    assert not await cli.acquire("cli-tick", TTL)


async def test_expired_lease_is_taken_over(make_lock, clock):
    api, cli = make_lock(), make_lock()
    await api.acquire("crashed-tick", TTL)

    clock.now = T0 + TTL - timedelta(seconds=1)
    assert not await cli.acquire("cli-tick", TTL)

    clock.now = T0 + TTL + timedelta(seconds=1)
    assert await cli.acquire("cli-tick", TTL)
    assert not await api.acquire("crashed-tick", TTL)


async def test_release_without_a_lease_is_a_no_op(make_lock):
    lock = make_lock()
    await lock.release("nobody")
    assert await lock.acquire("api-tick", TTL)
