"""Event Sync — intake filter between the producer's event list and the EventCache.

Invariants:
    - Only upcoming events are cached: parseable start_at strictly after now
    - Items without a usable id are dropped and counted, never fatal
    - replace_all() is skipped when the upcoming events equal the cached snapshot;
      a rescheduled or moved event counts as a change
    - Duplicate ids in one payload: first occurrence wins
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable

from pydantic import ValidationError

from app.core.domain_types import EventId, TrackedEvent
from app.core.snapshot_codec import StoredEvent
from app.services.event_cache import EventCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncResult:
    cached: int
    dropped: int
    changed: bool


def upcoming_events(
    items: Iterable[Any], now: datetime,
) -> tuple[list[TrackedEvent], int]:
    """Decode producer items and keep upcoming ones. Returns (events, dropped)."""
    events: list[TrackedEvent] = []
    seen: set[EventId] = set()
    dropped = 0
    for item in items:
        try:
            event = StoredEvent.model_validate(item).to_domain()
        except ValidationError:
            dropped += 1
            continue
        if event.start_at is None or event.start_at <= now or event.id in seen:
            dropped += 1
            continue
        seen.add(event.id)
        events.append(event)
    return events, dropped


async def sync_events(
    cache: EventCache, items: Iterable[Any], now: datetime,
) -> SyncResult:
    """Cache the upcoming subset of items. Raises PersistenceError on write failure."""
    events, dropped = upcoming_events(items, now)
    if set(events) == set(await cache.get_all()):
        logger.debug("Event sync: %d upcoming, unchanged", len(events))
        return SyncResult(cached=len(events), dropped=dropped, changed=False)

    await cache.replace_all(events)
    logger.info(
        "Event sync: cached %d upcoming events", len(events),
        extra={"dropped": dropped},
    )
    return SyncResult(cached=len(events), dropped=dropped, changed=True)
