"""Event Cache — persisted last-write-wins snapshot of the trackable events.

Invariants:
    - replace_all() fully supersedes prior contents (no merge, no diff)
    - get_all() never raises: read failure or unreadable snapshot -> empty list
    - Malformed entries decode leniently (see core/snapshot_codec.py)

Design Decisions:
    - No in-memory copy: every tick reads the persisted snapshot so a restarted
      process and a background wake see the same events
    - replace_all() lets PersistenceError propagate: the producer must know its write failed
"""

import logging
from collections.abc import Iterable

from app.core.domain_types import TrackedEvent
from app.core.errors import MalformedInputError, PersistenceError
from app.core.repository_protocols import KeyValueStore
from app.core.snapshot_codec import decode_events, encode_events

logger = logging.getLogger(__name__)

EVENTS_KEY = "@cached_events"


class EventCache:
    def __init__(self, store: KeyValueStore):
        self._store = store

    async def replace_all(self, events: Iterable[TrackedEvent]) -> None:
        await self._store.set(EVENTS_KEY, encode_events(events))

    async def get_all(self) -> list[TrackedEvent]:
        try:
            payload = await self._store.get(EVENTS_KEY)
        except PersistenceError as e:
            logger.warning(
                "Event cache read failed: %s", e.message,
                extra={"error_code": e.code},
            )
            return []
        if payload is None:
            return []
        try:
            events, dropped = decode_events(payload)
        except MalformedInputError as e:
            logger.warning(
                "Event cache snapshot unreadable: %s", e.message,
                extra={"error_code": e.code},
            )
            return []
        if dropped:
            logger.warning(
                "Dropped %d cached events without a usable id", dropped,
                extra={"dropped": dropped},
            )
        return events
