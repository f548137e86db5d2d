"""Tick Locks — TickLock implementations (SQL lease row and in-process).

Invariants:
    - At most one owner holds an unexpired lease at a time
    - An expired lease is taken over by the next acquire (crashed holders never wedge ticks)
    - release() only removes the caller's own lease
    - SQL failures surface as PersistenceError, never raw SQLAlchemy exceptions

Design Decisions:
    - SqlTickLock claims with a conditional UPDATE, then falls back to INSERT;
      a concurrent claimant loses on the primary key and gets False
    - The lease is a row, not an advisory lock: same behaviour on SQLite and Postgres
    - InMemoryTickLock for in-memory stores and tests; single event loop, no await
      between check and claim
"""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, or_, update
from sqlalchemy.exc import IntegrityError

from app.infrastructure.database import DatabaseSessionManager
from app.models.tick_lease import TickLease

TICK_LEASE_NAME = "reminder-tick"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SqlTickLock:
    """TickLock over the tick_leases table."""

    def __init__(
        self,
        manager: DatabaseSessionManager,
        name: str = TICK_LEASE_NAME,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._manager = manager
        self._name = name
        self._clock = clock

    async def acquire(self, owner: str, ttl: timedelta) -> bool:
        now = self._clock()
        expires_at = now + ttl
        async with self._manager.session() as db:
            result = await db.execute(
                update(TickLease)
                .where(TickLease.name == self._name)
                .where(or_(TickLease.expires_at < now, TickLease.owner == owner))
                .values(owner=owner, expires_at=expires_at)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 1:
                await db.commit()
                return True
            db.add(TickLease(name=self._name, owner=owner, expires_at=expires_at))
            try:
                await db.commit()
            except IntegrityError:
                await db.rollback()
                return False
            return True

    async def release(self, owner: str) -> None:
        async with self._manager.session() as db:
            await db.execute(
                delete(TickLease)
                .where(TickLease.name == self._name, TickLease.owner == owner)
                .execution_options(synchronize_session=False)
            )
            await db.commit()


class InMemoryTickLock:
    """Process-local TickLock with the same contract and no IO."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self._clock = clock
        self.owner: str | None = None
        self.expires_at: datetime | None = None

    async def acquire(self, owner: str, ttl: timedelta) -> bool:
        now = self._clock()
        if self.owner not in (None, owner) and self.expires_at > now:
            return False
        self.owner, self.expires_at = owner, now + ttl
        return True

    async def release(self, owner: str) -> None:
        if self.owner == owner:
            self.owner, self.expires_at = None, None
