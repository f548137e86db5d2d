"""Event Sync — upcoming-only intake and change detection."""

from datetime import timedelta

import pytest

from app.core.errors import PersistenceError
from app.services.event_sync import sync_events, upcoming_events
from tests.fakes import T0


def _item(event_id, minutes_ahead, **extra):
    item = {
        "id": event_id,
        "title": f"Event {event_id}",
        "start_at": (T0 + timedelta(minutes=minutes_ahead)).isoformat(),
        "latitude": 6.79,
        "longitude": 79.89,
    }
    item.update(extra)
    return item


def test_only_upcoming_events_are_kept():
    events, dropped = upcoming_events([
        _item("future", 30),
        _item("past", -5),
        _item("now", 0),
        _item("undated", 10, start_at=None),
        {"title": "no id"},
    ], T0)
    assert [e.id for e in events] == ["future"]
    assert dropped == 4


def test_duplicate_ids_keep_first():
    events, dropped = upcoming_events([_item("a", 5), _item("a", 50)], T0)
    assert len(events) == 1
    assert events[0].start_at == T0 + timedelta(minutes=5)
    assert dropped == 1


async def test_first_sync_writes_cache(cache):
    result = await sync_events(cache, [_item("a", 5), _item("b", -5)], T0)
    assert (result.cached, result.dropped, result.changed) == (1, 1, True)
    assert [e.id for e in await cache.get_all()] == ["a"]


async def test_unchanged_sync_skips_the_write(cache, store):
    await sync_events(cache, [_item("a", 5)], T0)
    writes = store.writes
    result = await sync_events(cache, [_item("a", 5)], T0)
    assert not result.changed
    assert store.writes == writes


async def test_rescheduled_event_counts_as_change(cache):
    await sync_events(cache, [_item("a", 5)], T0)
    result = await sync_events(cache, [_item("a", 45)], T0)
    assert result.changed
    assert (await cache.get_all())[0].start_at == T0 + timedelta(minutes=45)


async def test_empty_payload_clears_cache(cache):
    await sync_events(cache, [_item("a", 5)], T0)
    result = await sync_events(cache, [], T0)
    assert result.changed
    assert await cache.get_all() == []


async def test_write_failure_propagates(cache, store):
    store.fail_writes = True
    with pytest.raises(PersistenceError):
        await sync_events(cache, [_item("a", 5)], T0)
