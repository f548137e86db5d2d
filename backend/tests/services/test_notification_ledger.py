"""Notification Ledger — dedup window, retention pruning and failure handling.

Tests:
    - record -> has_recent_record true inside the dedup window, false after it
    - prune removes records older than retention and persists the removal
    - record is duplicate-safe
    - Read failure: empty on first load, cached copy on refresh
    - Write failure: logged, in-memory copy still answers dedup queries
"""

from datetime import timedelta

from app.core.domain_types import EventId
from app.core.snapshot_codec import decode_records
from app.services.notification_ledger import LEDGER_KEY, NotificationLedger
from tests.fakes import T0, FlakyStore

RETENTION = timedelta(days=7)


async def test_recorded_event_is_recent(ledger):
    await ledger.record(EventId("a"), T0)
    assert await ledger.has_recent_record(EventId("a"), T0 + timedelta(hours=1))
    assert not await ledger.has_recent_record(EventId("b"), T0)


async def test_record_expires_after_dedup_window(ledger):
    await ledger.record(EventId("a"), T0)
    assert not await ledger.has_recent_record(EventId("a"), T0 + timedelta(hours=24))


async def test_prune_removes_records_past_retention(ledger, store):
    await ledger.record(EventId("old"), T0)
    await ledger.record(EventId("new"), T0 + timedelta(days=5))

    removed = await ledger.prune(T0 + timedelta(days=8), RETENTION)

    assert removed == 1
    assert [r.event_id for r in await ledger.records()] == ["new"]
    stored, _ = decode_records(store.data[LEDGER_KEY])
    assert [r.event_id for r in stored] == ["new"]


async def test_prune_keeps_record_exactly_at_retention(ledger):
    await ledger.record(EventId("a"), T0)
    assert await ledger.prune(T0 + RETENTION, RETENTION) == 0


async def test_prune_without_changes_does_not_write(ledger, store):
    await ledger.record(EventId("a"), T0)
    writes = store.writes
    await ledger.prune(T0 + timedelta(hours=1), RETENTION)
    assert store.writes == writes


async def test_record_is_duplicate_safe(ledger):
    assert await ledger.record(EventId("a"), T0)
    assert not await ledger.record(EventId("a"), T0 + timedelta(minutes=1))
    records = await ledger.records()
    assert len(records) == 1
    assert records[0].notified_at == T0


async def test_records_survive_a_new_instance(store):
    await NotificationLedger(store).record(EventId("a"), T0)
    fresh = NotificationLedger(store)
    assert await fresh.has_recent_record(EventId("a"), T0)


async def test_forget_and_clear(ledger):
    await ledger.record(EventId("a"), T0)
    await ledger.record(EventId("b"), T0)
    assert await ledger.forget(EventId("a"))
    assert not await ledger.forget(EventId("a"))
    await ledger.clear()
    assert await ledger.records() == []


async def test_unreadable_store_on_first_load_is_empty():
    store = FlakyStore()
    store.fail_reads = True
    ledger = NotificationLedger(store)
    await ledger.refresh()
    assert await ledger.records() == []


async def test_refresh_failure_keeps_cached_copy(ledger, store):
    await ledger.record(EventId("a"), T0)
    store.fail_reads = True
    await ledger.refresh()
    assert await ledger.has_recent_record(EventId("a"), T0)


async def test_corrupt_snapshot_is_treated_as_empty():
    store = FlakyStore({LEDGER_KEY: b"not json"})
    ledger = NotificationLedger(store)
    await ledger.refresh()
    assert await ledger.records() == []


async def test_write_failure_keeps_in_memory_record(ledger, store):
    store.fail_writes = True
    assert await ledger.record(EventId("a"), T0)
    assert await ledger.has_recent_record(EventId("a"), T0)
    assert LEDGER_KEY not in store.data
