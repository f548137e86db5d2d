"""Device — location fixes and permission readiness reported by the client.

Invariants:
    - POST /location only feeds the reported-location provider; a static
      deployment answers 400 (ConfigurationError)
    - PUT /permissions is partial; a push token re-targets the Expo sender
"""

import logging

from fastapi import APIRouter, Depends, status

from app.core.domain_types import Coordinate
from app.core.errors import ConfigurationError
from app.infrastructure.location import ReportedLocationProvider
from app.infrastructure.push_client import ExpoPushSender
from app.schemas.device import LocationReport, PermissionsResponse, PermissionsUpdate
from app.services.reminder_runtime import ReminderRuntime, get_runtime

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["device"])


@router.post("/location", status_code=status.HTTP_204_NO_CONTENT)
async def report_location(
    body: LocationReport, runtime: ReminderRuntime = Depends(get_runtime),
):
    """Record the device's latest position fix."""
    provider = runtime.location
    if not isinstance(provider, ReportedLocationProvider):
        raise ConfigurationError(
            "location source is not 'reported'", "location_source",
        )
    provider.report(Coordinate(body.latitude, body.longitude), body.fixed_at)


@router.put("/permissions", response_model=PermissionsResponse)
async def update_permissions(
    body: PermissionsUpdate, runtime: ReminderRuntime = Depends(get_runtime),
):
    """Update the readiness flags (and optionally the push token)."""
    runtime.permissions.update(
        notifications_permitted=body.notifications_permitted,
        location_permitted=body.location_permitted,
    )
    sender = runtime.sender
    if body.push_token is not None and isinstance(sender, ExpoPushSender):
        sender.push_token = body.push_token
        logger.info("Push token registered")
    return _permissions_response(runtime)


@router.get("/permissions", response_model=PermissionsResponse)
async def get_permissions(runtime: ReminderRuntime = Depends(get_runtime)):
    return _permissions_response(runtime)


def _permissions_response(runtime: ReminderRuntime) -> PermissionsResponse:
    sender = runtime.sender
    state = runtime.permissions
    return PermissionsResponse(
        notifications_permitted=state.notifications_permitted,
        location_permitted=state.location_permitted,
        permitted=state.permitted,
        push_registered=(
            bool(sender.push_token) if isinstance(sender, ExpoPushSender) else True
        ),
    )
