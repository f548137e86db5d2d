"""Reminder Runtime — builds the scheduler and its collaborators from Settings.

Invariants:
    - One runtime per process: the API lifespan and the one-shot tick command
      both build it here, so they share wiring, persisted state and the tick lease
    - Only the runtime owns closable resources (push HTTP client)

Design Decisions:
    - Plain dataclass container, stored on app.state by the lifespan
    - Sender and location source chosen by Settings literals, no registry
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta

from fastapi import Request

from app.config import Settings
from app.core.domain_types import Coordinate
from app.core.repository_protocols import (
    KeyValueStore, LocationProvider, NotificationSender, TickLock,
)
from app.infrastructure.location import ReportedLocationProvider, StaticLocationProvider
from app.infrastructure.push_client import ExpoPushSender, LoggingSender
from app.services.event_cache import EventCache
from app.services.notification_ledger import NotificationLedger
from app.services.permission_state import PermissionState
from app.services.reminder_scheduler import ReminderScheduler
from app.services.tick_driver import TickDriver

logger = logging.getLogger(__name__)


@dataclass
class ReminderRuntime:
    scheduler: ReminderScheduler
    driver: TickDriver
    location: LocationProvider
    sender: NotificationSender
    permissions: PermissionState = field(default_factory=PermissionState)

    async def aclose(self) -> None:
        if self.driver.is_running:
            await self.driver.stop()
        if isinstance(self.sender, ExpoPushSender):
            await self.sender.aclose()


def build_location_provider(settings: Settings) -> LocationProvider:
    if settings.location_source == "static":
        return StaticLocationProvider(
            Coordinate(settings.static_latitude, settings.static_longitude),
        )
    return ReportedLocationProvider(
        max_age=timedelta(seconds=settings.location_max_age_seconds),
    )


def build_sender(settings: Settings) -> NotificationSender:
    if settings.notification_sender == "expo":
        return ExpoPushSender(
            push_url=settings.expo_push_url,
            push_token=settings.expo_push_token,
            access_token=settings.expo_access_token,
            max_retries=settings.push_max_retries,
            base_delay_ms=settings.push_base_delay_ms,
            max_delay_ms=settings.push_max_delay_ms,
            timeout_seconds=settings.push_timeout_seconds,
        )
    return LoggingSender()


def build_runtime(
    settings: Settings,
    store: KeyValueStore,
    location: LocationProvider | None = None,
    sender: NotificationSender | None = None,
    permissions: PermissionState | None = None,
    tick_lock: TickLock | None = None,
) -> ReminderRuntime:
    """Wire scheduler + driver over one store and tick lease. Raises ConfigurationError."""
    config = settings.to_reminder_config()
    location = location or build_location_provider(settings)
    sender = sender or build_sender(settings)
    permissions = permissions or PermissionState()
    scheduler = ReminderScheduler(
        cache=EventCache(store),
        ledger=NotificationLedger(store, config.dedup_window),
        location=location,
        sender=sender,
        config=config,
        tick_lock=tick_lock,
    )
    driver = TickDriver(scheduler, permitted=lambda: permissions.permitted)
    logger.info(
        "Reminder runtime ready: sender=%s location=%s",
        type(sender).__name__, type(location).__name__,
    )
    return ReminderRuntime(
        scheduler=scheduler, driver=driver, location=location,
        sender=sender, permissions=permissions,
    )


def get_runtime(request: Request) -> ReminderRuntime:
    """FastAPI dependency: the runtime built by the lifespan."""
    return request.app.state.runtime
