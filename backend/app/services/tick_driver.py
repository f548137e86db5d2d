"""Tick Driver — fires ReminderScheduler.on_tick on a fixed interval.

Invariants:
    - Each interval starts a new tick task without waiting for the previous one;
      overlap is resolved by the scheduler's guard, not here
    - The permission signal is read fresh for every tick
    - stop() cancels the loop and any tick still in flight

Design Decisions:
    - Plain asyncio task owned by the application lifespan, re-created on every start
    - A tick task that dies is logged; the loop keeps firing
"""

import asyncio
import logging
from collections.abc import Callable

from app.services.reminder_scheduler import ReminderScheduler

logger = logging.getLogger(__name__)


class TickDriver:
    def __init__(
        self,
        scheduler: ReminderScheduler,
        permitted: Callable[[], bool] = lambda: True,
        interval_seconds: float | None = None,
    ):
        self.scheduler = scheduler
        self._permitted = permitted
        self._interval_override = interval_seconds
        self._loop_task: asyncio.Task | None = None
        self._in_flight: set[asyncio.Task] = set()

    @property
    def interval_seconds(self) -> float:
        """Explicit override, else the scheduler's current tick interval."""
        if self._interval_override is not None:
            return self._interval_override
        return self.scheduler.config.tick_interval_seconds

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._loop_task = asyncio.create_task(self._run(), name="reminder-tick-driver")
        logger.info("Tick driver started, interval %.1fs", self.interval_seconds)

    async def stop(self) -> None:
        tasks = list(self._in_flight)
        if self._loop_task is not None:
            tasks.append(self._loop_task)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._loop_task = None
        self._in_flight.clear()
        logger.info("Tick driver stopped")

    async def _run(self) -> None:
        while True:
            self._fire()
            await asyncio.sleep(self.interval_seconds)

    def _fire(self) -> None:
        task = asyncio.create_task(
            self.scheduler.on_tick(permitted=self._permitted()),
        )
        self._in_flight.add(task)
        task.add_done_callback(self._on_tick_done)

    def _on_tick_done(self, task: asyncio.Task) -> None:
        self._in_flight.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Tick task died: %s", exc, exc_info=exc)
