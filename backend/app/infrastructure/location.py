"""Location Providers — LocationProvider implementations.

Invariants:
    - ReportedLocationProvider returns the device's last fix only while it is
      younger than max_age; older or missing fixes raise LocationUnavailableError
    - StaticLocationProvider always returns its configured coordinate
    - Neither provider blocks; timeout is honoured by the caller's wait_for
    - Stored fix times are aware UTC and never later than the clock (naive is
      taken as UTC, a future fix is clamped to now), so a fix always ages out

Design Decisions:
    - The device pushes fixes (POST /api/v1/location) instead of the server polling GPS
    - Clock injectable so freshness can be tested without sleeping
"""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from app.core.domain_types import Coordinate
from app.core.errors import LocationUnavailableError
from app.core.snapshot_codec import parse_timestamp

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReportedLocationProvider:
    """Last-known device fix with a freshness bound."""

    def __init__(
        self,
        max_age: timedelta = timedelta(minutes=5),
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._max_age = max_age
        self._clock = clock
        self._fix: Coordinate | None = None
        self._fixed_at: datetime | None = None

    def report(self, coordinate: Coordinate, fixed_at: datetime | None = None) -> None:
        """Record a fix pushed by the device."""
        now = self._clock()
        fixed_at = parse_timestamp(fixed_at) or now
        if fixed_at > now:
            logger.warning(
                "Location fix is %ds in the future, clamped to now",
                int((fixed_at - now).total_seconds()),
            )
            fixed_at = now
        self._fix = coordinate
        self._fixed_at = fixed_at

    @property
    def last_fix(self) -> tuple[Coordinate, datetime] | None:
        if self._fix is None or self._fixed_at is None:
            return None
        return self._fix, self._fixed_at

    async def get_current_coordinate(self, timeout: float) -> Coordinate | None:
        if self._fix is None or self._fixed_at is None:
            raise LocationUnavailableError("no fix reported yet")
        age = self._clock() - self._fixed_at
        if age > self._max_age:
            raise LocationUnavailableError(
                f"last fix is {int(age.total_seconds())}s old",
            )
        return self._fix


class StaticLocationProvider:
    """Fixed-site deployments (e.g. an on-campus kiosk)."""

    def __init__(self, coordinate: Coordinate):
        self._coordinate = coordinate

    async def get_current_coordinate(self, timeout: float) -> Coordinate | None:
        return self._coordinate
