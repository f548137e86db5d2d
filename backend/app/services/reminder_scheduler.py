"""Reminder Scheduler — decides, once per tick, which cached events get a reminder.

Invariants:
    - Ticks are serialized twice over: an asyncio.Lock inside the process and a
      TickLock lease shared with every other process ticking the same stores;
      an overlapping tick is dropped (default) or waits, never double-sends
    - Ledger is refreshed and pruned on every tick, permitted or not, before
      any event is evaluated
    - Per event: dedup -> start parse -> window -> coordinate -> location -> radius -> send
    - Location is fetched lazily, at most once per tick, under a timeout;
      Unavailable skips every remaining proximity-gated event (fail-closed)
    - Ledger records only after the sender reports Accepted; Rejected stays pending
    - One event's failure is logged and isolated; on_tick never raises
    - All state is re-derived from the two persisted stores every tick

Design Decisions:
    - Async end to end: the stores and capabilities are async, the evaluators are pure
    - Soft tick timeout via asyncio.wait_for: a wedged capability ends the tick
      instead of blocking the driver
    - Lease ttl is twice the tick timeout, so a crashed holder frees it on its own;
      WAIT polls for the lease no longer than one ttl, then drops
    - Config captured once per tick; configure() swaps it under the same guard
"""

import asyncio
import logging
from collections.abc import Callable
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import AsyncIterator
from uuid import uuid4

from app.core.domain_types import (
    Coordinate, DeliveryResult, EventDecision, EventId, NotificationRecord,
    OverlapPolicy, TickId, TickStatus, TrackedEvent,
)
from app.core.eligibility import is_eligible
from app.core.errors import (
    CapabilityUnavailableError, ConcurrentTickError, PersistenceError,
)
from app.core.notification_content import build_reminder, build_test_notification
from app.core.proximity import haversine_km, is_within_radius
from app.core.reminder_config import ReminderConfig
from app.core.repository_protocols import LocationProvider, NotificationSender, TickLock
from app.core.tick_outcome import TickOutcome
from app.infrastructure.tick_lock import InMemoryTickLock
from app.services.event_cache import EventCache
from app.services.notification_ledger import NotificationLedger

logger = logging.getLogger(__name__)

LEASE_POLL_SECONDS = 0.2


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _TickLocation:
    """Position for one tick: fetched on first use, then memoized."""

    def __init__(self, provider: LocationProvider, timeout: float):
        self._provider = provider
        self._timeout = timeout
        self._fetched = False
        self._value: Coordinate | None = None

    @property
    def available(self) -> bool | None:
        """None when no event needed the location this tick."""
        return (self._value is not None) if self._fetched else None

    async def get(self) -> Coordinate | None:
        if not self._fetched:
            self._fetched = True
            self._value = await self._fetch()
        return self._value

    async def _fetch(self) -> Coordinate | None:
        try:
            return await asyncio.wait_for(
                self._provider.get_current_coordinate(self._timeout),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Location fetch timed out after %.1fs", self._timeout)
        except CapabilityUnavailableError as e:
            logger.info("Location unavailable: %s", e.message,
                        extra={"error_code": e.code})
        except Exception as e:
            logger.warning("Location provider failed: %s", e, exc_info=True)
        return None


class ReminderScheduler:
    """Owns EventCache + NotificationLedger and runs the per-tick state machine."""

    def __init__(
        self,
        cache: EventCache,
        ledger: NotificationLedger,
        location: LocationProvider,
        sender: NotificationSender,
        config: ReminderConfig | None = None,
        clock: Callable[[], datetime] = _utcnow,
        tick_lock: TickLock | None = None,
    ):
        self.cache = cache
        self.ledger = ledger
        self.location = location
        self.sender = sender
        self._config = (config or ReminderConfig()).validate()
        self.ledger.dedup_window = self._config.dedup_window
        self._clock = clock
        self._guard = asyncio.Lock()
        self._tick_lock = tick_lock or InMemoryTickLock()
        self.last_outcome: TickOutcome | None = None

    @property
    def config(self) -> ReminderConfig:
        return self._config

    @property
    def tick_in_progress(self) -> bool:
        return self._guard.locked()

    async def configure(self, **changes: object) -> ReminderConfig:
        """Apply validated changes between ticks. Raises ConfigurationError."""
        async with self._guard:
            updated = self._config.updated(**changes)
            self._config = updated
            self.ledger.dedup_window = updated.dedup_window
        logger.info("Scheduler reconfigured: %s", updated.to_dict())
        return updated

    # ---- Tick ----

    async def on_tick(
        self, now: datetime | None = None, permitted: bool = True,
    ) -> TickOutcome:
        """Evaluate every cached event once. Never raises."""
        now = now or self._clock()
        outcome = TickOutcome(tick_id=TickId(uuid4().hex[:12]), started_at=now)

        config = self._config
        if self._guard.locked() and config.overlap_policy is OverlapPolicy.DROP:
            outcome.status = TickStatus.DROPPED_OVERLAP
            logger.info("Tick dropped, another tick is running",
                        extra={"tick_id": outcome.tick_id})
            return outcome

        async with self._guard:
            config = self._config
            wait = config.overlap_policy is OverlapPolicy.WAIT
            try:
                async with self._lease(outcome.tick_id, config, wait) as leased:
                    if leased:
                        await asyncio.wait_for(
                            self._run(outcome, now, config, permitted),
                            timeout=config.tick_timeout_seconds,
                        )
                    else:
                        outcome.status = TickStatus.DROPPED_OVERLAP
                        logger.info("Tick dropped, tick lease held elsewhere",
                                    extra={"tick_id": outcome.tick_id})
            except asyncio.TimeoutError:
                outcome.status = TickStatus.TIMED_OUT
                logger.warning(
                    "Tick exceeded %.1fs soft timeout", config.tick_timeout_seconds,
                    extra={"tick_id": outcome.tick_id},
                )
            except Exception as e:
                outcome.status = TickStatus.FAILED
                logger.error("Unexpected error in tick: %s", e, exc_info=True,
                             extra={"tick_id": outcome.tick_id})
            self.last_outcome = outcome

        self._log_outcome(outcome)
        return outcome

    @asynccontextmanager
    async def _lease(
        self, owner: str, config: ReminderConfig, wait: bool,
    ) -> AsyncIterator[bool]:
        """Hold the shared tick lease; yields False when it was not obtained."""
        ttl = timedelta(seconds=config.tick_timeout_seconds * 2)
        acquired = await self._tick_lock.acquire(owner, ttl)
        if not acquired and wait:
            loop = asyncio.get_running_loop()
            deadline = loop.time() + ttl.total_seconds()
            while not acquired and loop.time() < deadline:
                await asyncio.sleep(LEASE_POLL_SECONDS)
                acquired = await self._tick_lock.acquire(owner, ttl)
        try:
            yield acquired
        finally:
            if acquired:
                await self._release(owner)

    async def _release(self, owner: str) -> None:
        try:
            await self._tick_lock.release(owner)
        except PersistenceError as e:
            logger.warning(
                "Tick lease release failed, it will expire: %s", e.message,
                extra={"error_code": e.code},
            )

    async def _run(
        self,
        outcome: TickOutcome,
        now: datetime,
        config: ReminderConfig,
        permitted: bool,
    ) -> None:
        await self.ledger.refresh()
        outcome.pruned = await self.ledger.prune(now, config.retention_period)

        if not permitted:
            outcome.status = TickStatus.NOT_PERMITTED
            logger.info("Tick skipped, reminders not permitted",
                        extra={"tick_id": outcome.tick_id})
            return

        events = await self.cache.get_all()
        if not events:
            outcome.status = TickStatus.NO_EVENTS
            return

        location = _TickLocation(self.location, config.location_timeout_seconds)
        for event in events:
            if event.id in outcome.decisions:
                continue
            try:
                decision = await self._evaluate(event, now, config, location)
            except Exception as e:
                decision = EventDecision.FAILED
                logger.error(
                    "Evaluation failed: %s", e, exc_info=True,
                    extra={"event_id": event.id, "tick_id": outcome.tick_id},
                )
            outcome.decisions[event.id] = decision
        outcome.location_available = location.available

    async def _evaluate(
        self,
        event: TrackedEvent,
        now: datetime,
        config: ReminderConfig,
        location: _TickLocation,
    ) -> EventDecision:
        if await self.ledger.has_recent_record(event.id, now):
            return EventDecision.ALREADY_NOTIFIED
        if event.start_at is None:
            return EventDecision.MALFORMED_START
        if not is_eligible(
            event.start_at, now, config.lead_minutes, config.tolerance_minutes,
        ):
            return EventDecision.OUTSIDE_WINDOW
        if event.coordinate is None:
            return EventDecision.NO_COORDINATE

        here = await location.get()
        if here is None:
            return EventDecision.LOCATION_UNAVAILABLE
        if not is_within_radius(here, event.coordinate, config.radius_km):
            return EventDecision.OUT_OF_RANGE

        request = build_reminder(event, now, haversine_km(here, event.coordinate))
        result = await self.sender.send(request)
        if not result.is_accepted:
            logger.warning("Delivery rejected, reminder stays pending: %s",
                           result.reason, extra={"event_id": event.id})
            return EventDecision.DELIVERY_REJECTED

        await self.ledger.record(event.id, now)
        logger.info("Reminder sent", extra={"event_id": event.id})
        return EventDecision.NOTIFIED

    def _log_outcome(self, outcome: TickOutcome) -> None:
        logger.info(
            "Tick finished",
            extra={
                "tick_id": outcome.tick_id,
                "outcome": outcome.status.value,
                "notified": len(outcome.notified),
                "skipped": outcome.skipped,
                "failed": outcome.failed,
                "pruned": outcome.pruned,
            },
        )

    # ---- Ledger views (serialized with ticks) ----

    async def active_reminders(self) -> list[tuple[NotificationRecord, bool]]:
        """Ledger records paired with whether their event is still cached."""
        async with self._guard:
            await self.ledger.refresh()
            records = await self.ledger.records()
            cached_ids = {e.id for e in await self.cache.get_all()}
        return [(r, r.event_id in cached_ids) for r in records]

    async def cancel(self, event_id: EventId) -> bool:
        """Forget one event's record. Raises ConcurrentTickError if the lease stays held."""
        async with self._guard, self._ledger_lease():
            await self.ledger.refresh()
            return await self.ledger.forget(event_id)

    async def cancel_all(self) -> None:
        async with self._guard, self._ledger_lease():
            await self.ledger.clear()
        logger.info("Cleared all reminder records")

    @asynccontextmanager
    async def _ledger_lease(self) -> AsyncIterator[None]:
        async with self._lease(uuid4().hex[:12], self._config, wait=True) as leased:
            if not leased:
                raise ConcurrentTickError()
            yield

    async def send_test_notification(self) -> DeliveryResult:
        return await self.sender.send(build_test_notification())
