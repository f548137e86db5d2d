"""Notification Ledger — persistent dedup record of which events were already notified.

Invariants:
    - At most one record per event_id inside the dedup window
    - record() is duplicate-safe: a second call inside the window keeps the first notified_at
    - prune() drops records with now - notified_at > retention_period
    - Read failure -> previously loaded copy if any, else empty ledger
      (may duplicate a reminder, never silently loses one)
    - Write failure -> logged and ignored; the in-memory copy stays authoritative until refresh()

Design Decisions:
    - Explicit read-through cache: loaded on first use or refresh(), every mutation
      writes the whole collection through; no process-global dedup map
    - Only ReminderScheduler calls the mutating methods (it holds the tick guard)
"""

import logging
from datetime import datetime, timedelta

from app.core.domain_types import EventId, NotificationRecord
from app.core.errors import MalformedInputError, PersistenceError
from app.core.reminder_config import DEFAULT_DEDUP_WINDOW
from app.core.repository_protocols import KeyValueStore
from app.core.snapshot_codec import decode_records, encode_records

logger = logging.getLogger(__name__)

LEDGER_KEY = "@notified_events"


class NotificationLedger:
    """Dedup ledger over a KeyValueStore slot."""

    def __init__(
        self, store: KeyValueStore, dedup_window: timedelta = DEFAULT_DEDUP_WINDOW,
    ):
        self._store = store
        self.dedup_window = dedup_window
        self._records: list[NotificationRecord] | None = None

    async def refresh(self) -> None:
        """Reload from persistence; an unreadable store keeps the cached copy."""
        loaded = await self._load()
        if loaded is not None:
            self._records = loaded
        elif self._records is None:
            self._records = []

    async def has_recent_record(self, event_id: EventId, now: datetime) -> bool:
        records = await self._ensure_loaded()
        return any(
            r.event_id == event_id and now - r.notified_at < self.dedup_window
            for r in records
        )

    async def record(self, event_id: EventId, notified_at: datetime) -> bool:
        """Append a record. Returns False when one already exists in the window."""
        if await self.has_recent_record(event_id, notified_at):
            return False
        self._records.append(NotificationRecord(event_id, notified_at))
        await self._persist()
        return True

    async def prune(self, now: datetime, retention_period: timedelta) -> int:
        """Remove expired records; returns how many were removed."""
        records = await self._ensure_loaded()
        kept = [r for r in records if now - r.notified_at <= retention_period]
        removed = len(records) - len(kept)
        if removed:
            self._records = kept
            await self._persist()
        return removed

    async def records(self) -> list[NotificationRecord]:
        return list(await self._ensure_loaded())

    async def forget(self, event_id: EventId) -> bool:
        """Remove every record for one event (cancel a single reminder)."""
        records = await self._ensure_loaded()
        kept = [r for r in records if r.event_id != event_id]
        if len(kept) == len(records):
            return False
        self._records = kept
        await self._persist()
        return True

    async def clear(self) -> None:
        self._records = []
        await self._persist()

    async def _ensure_loaded(self) -> list[NotificationRecord]:
        if self._records is None:
            self._records = await self._load() or []
        return self._records

    async def _load(self) -> list[NotificationRecord] | None:
        """Stored records, or None when the store could not be read."""
        try:
            payload = await self._store.get(LEDGER_KEY)
        except PersistenceError as e:
            logger.warning(
                "Ledger read failed: %s", e.message,
                extra={"error_code": e.code},
            )
            return None
        if payload is None:
            return []
        try:
            records, dropped = decode_records(payload)
        except MalformedInputError as e:
            logger.warning(
                "Ledger snapshot unreadable, treating as empty: %s", e.message,
                extra={"error_code": e.code},
            )
            return []
        if dropped:
            logger.warning(
                "Dropped %d malformed ledger entries", dropped,
                extra={"dropped": dropped},
            )
        return records

    async def _persist(self) -> None:
        try:
            await self._store.set(LEDGER_KEY, encode_records(self._records or []))
        except PersistenceError as e:
            logger.error(
                "Ledger write failed, keeping in-memory copy: %s", e.message,
                extra={"error_code": e.code},
            )
