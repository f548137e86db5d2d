"""Events — producer sync into the EventCache and a read-back view.

Invariants:
    - PUT replaces the cached snapshot with the upcoming subset of the payload
    - A changed sync runs one tick immediately (permission signal applies)
    - Cache write failure surfaces as PersistenceError (503), never a silent 200
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from app.schemas.events import EventResponse, EventsSyncRequest, EventsSyncResponse
from app.services.event_sync import sync_events
from app.services.reminder_runtime import ReminderRuntime, get_runtime

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/events", tags=["events"])


@router.put("", response_model=EventsSyncResponse)
async def replace_events(
    body: EventsSyncRequest, runtime: ReminderRuntime = Depends(get_runtime),
):
    """Sync the producer's event list."""
    scheduler = runtime.scheduler
    result = await sync_events(
        scheduler.cache,
        [e.model_dump() for e in body.events],
        datetime.now(timezone.utc),
    )
    tick = None
    if result.changed:
        outcome = await scheduler.on_tick(permitted=runtime.permissions.permitted)
        tick = outcome.to_dict()
    return EventsSyncResponse(
        cached=result.cached, dropped=result.dropped,
        changed=result.changed, tick=tick,
    )


@router.get("", response_model=list[EventResponse])
async def list_events(runtime: ReminderRuntime = Depends(get_runtime)):
    """Currently cached events."""
    events = await runtime.scheduler.cache.get_all()
    return [EventResponse.from_domain(e) for e in events]
