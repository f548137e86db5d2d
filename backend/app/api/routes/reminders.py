"""Reminders — manual ticks, ledger views, cancellation and runtime config.

Invariants:
    - Every mutation goes through ReminderScheduler, serialized with ticks
    - A manual tick that loses the overlap race answers 409, never runs twice
    - Config updates are all-or-nothing: an invalid change leaves the old config
"""

import logging

from fastapi import APIRouter, Depends, status

from app.core.domain_types import EventId, ReminderState, TickStatus
from app.core.errors import ConcurrentTickError, ResourceNotFoundError
from app.schemas.reminders import ActiveReminderResponse, ConfigUpdate, DeliveryResponse
from app.services.reminder_runtime import ReminderRuntime, get_runtime

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/reminders", tags=["reminders"])


@router.post("/tick")
async def run_tick(runtime: ReminderRuntime = Depends(get_runtime)):
    """Run one tick now and return its outcome."""
    outcome = await runtime.scheduler.on_tick(
        permitted=runtime.permissions.permitted,
    )
    if outcome.status is TickStatus.DROPPED_OVERLAP:
        raise ConcurrentTickError()
    return outcome.to_dict()


@router.get("", response_model=list[ActiveReminderResponse])
async def list_reminders(runtime: ReminderRuntime = Depends(get_runtime)):
    """Ledger records, flagged FORGOTTEN once their event left the cache."""
    entries = await runtime.scheduler.active_reminders()
    return [
        ActiveReminderResponse(
            event_id=record.event_id,
            notified_at=record.notified_at,
            state=ReminderState.NOTIFIED if cached else ReminderState.FORGOTTEN,
        )
        for record, cached in entries
    ]


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_all_reminders(runtime: ReminderRuntime = Depends(get_runtime)):
    await runtime.scheduler.cancel_all()


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_reminder(
    event_id: str, runtime: ReminderRuntime = Depends(get_runtime),
):
    """Forget one event's record so it may be reminded again."""
    if not await runtime.scheduler.cancel(EventId(event_id)):
        raise ResourceNotFoundError("Reminder", event_id)


@router.get("/config")
async def get_config(runtime: ReminderRuntime = Depends(get_runtime)):
    return runtime.scheduler.config.to_dict()


@router.put("/config")
async def update_config(
    body: ConfigUpdate, runtime: ReminderRuntime = Depends(get_runtime),
):
    """Validate and swap the scheduler config between ticks."""
    updated = await runtime.scheduler.configure(**body.to_changes())
    return updated.to_dict()


@router.post("/test-notification", response_model=DeliveryResponse)
async def send_test_notification(runtime: ReminderRuntime = Depends(get_runtime)):
    result = await runtime.scheduler.send_test_notification()
    return DeliveryResponse(status=result.status.value, reason=result.reason)
