"""Key-Value Stores — KeyValueStore implementations (SQL-backed and in-memory).

Invariants:
    - get() returns None for a key that was never written
    - set() replaces the whole value (last write wins)
    - SQL failures surface as PersistenceError, never raw SQLAlchemy exceptions

Design Decisions:
    - session.merge for upsert: portable across SQLite and Postgres
    - InMemoryKeyValueStore for tests and ephemeral runs; same contract, no IO
"""

from datetime import datetime, timezone

from app.infrastructure.database import DatabaseSessionManager
from app.models.kv_entry import KeyValueEntry


class SqlKeyValueStore:
    """KeyValueStore over the kv_entries table."""

    def __init__(self, manager: DatabaseSessionManager):
        self._manager = manager

    async def get(self, key: str) -> bytes | None:
        async with self._manager.session() as db:
            entry = await db.get(KeyValueEntry, key)
            return bytes(entry.value) if entry is not None else None

    async def set(self, key: str, value: bytes) -> None:
        async with self._manager.session() as db:
            await db.merge(KeyValueEntry(
                key=key, value=value, updated_at=datetime.now(timezone.utc),
            ))
            await db.commit()


class InMemoryKeyValueStore:
    """Process-local KeyValueStore with the same contract and no IO."""

    def __init__(self, initial: dict[str, bytes] | None = None):
        self.data: dict[str, bytes] = dict(initial or {})

    async def get(self, key: str) -> bytes | None:
        return self.data.get(key)

    async def set(self, key: str, value: bytes) -> None:
        self.data[key] = value
