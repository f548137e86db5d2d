"""Reminder Config — validated tuning knobs for one scheduler instance.

Invariants:
    - tolerance_minutes >= tick_interval_seconds / 120 (half a tick, in minutes)
    - lead_minutes > tolerance_minutes, so the band never reaches past the start time
    - radius_km > 0, retention_period >= dedup_window > 0
    - Instances are immutable: configure() swaps the whole object between ticks

Design Decisions:
    - Frozen dataclass, not pydantic: core stays framework-free; settings map onto it once
    - validate() raises ConfigurationError naming the offending option
"""

from dataclasses import dataclass, replace
from datetime import timedelta

from app.core.domain_types import OverlapPolicy
from app.core.eligibility import min_tolerance_minutes
from app.core.errors import ConfigurationError

DEFAULT_LEAD_MINUTES = 2.0
DEFAULT_TOLERANCE_MINUTES = 0.5
DEFAULT_RADIUS_KM = 8.0
DEFAULT_RETENTION_PERIOD = timedelta(days=7)
DEFAULT_DEDUP_WINDOW = timedelta(hours=24)
DEFAULT_TICK_INTERVAL_SECONDS = 60.0


@dataclass(frozen=True)
class ReminderConfig:
    lead_minutes: float = DEFAULT_LEAD_MINUTES
    tolerance_minutes: float = DEFAULT_TOLERANCE_MINUTES
    radius_km: float = DEFAULT_RADIUS_KM
    retention_period: timedelta = DEFAULT_RETENTION_PERIOD
    dedup_window: timedelta = DEFAULT_DEDUP_WINDOW
    tick_interval_seconds: float = DEFAULT_TICK_INTERVAL_SECONDS
    location_timeout_seconds: float = 10.0
    tick_timeout_seconds: float = 45.0
    overlap_policy: OverlapPolicy = OverlapPolicy.DROP

    def validate(self) -> "ReminderConfig":
        """Return self if consistent, else raise ConfigurationError."""
        if self.tick_interval_seconds <= 0:
            raise ConfigurationError(
                "tick interval must be positive", "tick_interval_seconds",
            )
        floor = min_tolerance_minutes(self.tick_interval_seconds)
        if self.tolerance_minutes < floor:
            raise ConfigurationError(
                f"tolerance {self.tolerance_minutes} min is narrower than half "
                f"the {self.tick_interval_seconds:g}s tick interval ({floor:g} min)",
                "tolerance_minutes",
            )
        if self.lead_minutes <= self.tolerance_minutes:
            raise ConfigurationError(
                "lead must exceed tolerance", "lead_minutes",
            )
        if self.radius_km <= 0:
            raise ConfigurationError("radius must be positive", "radius_km")
        if self.dedup_window <= timedelta(0):
            raise ConfigurationError(
                "dedup window must be positive", "dedup_window",
            )
        if self.retention_period < self.dedup_window:
            raise ConfigurationError(
                "retention period must cover the dedup window",
                "retention_period",
            )
        if self.location_timeout_seconds <= 0 or self.tick_timeout_seconds <= 0:
            raise ConfigurationError(
                "timeouts must be positive", "tick_timeout_seconds",
            )
        if self.location_timeout_seconds >= self.tick_timeout_seconds:
            raise ConfigurationError(
                "location timeout must be shorter than the tick timeout",
                "location_timeout_seconds",
            )
        return self

    def updated(self, **changes: object) -> "ReminderConfig":
        """Copy with changes applied (None values ignored), validated."""
        applied = {k: v for k, v in changes.items() if v is not None}
        return replace(self, **applied).validate()

    def to_dict(self) -> dict:
        return {
            "lead_minutes": self.lead_minutes,
            "tolerance_minutes": self.tolerance_minutes,
            "radius_km": self.radius_km,
            "retention_period_days": self.retention_period / timedelta(days=1),
            "dedup_window_hours": self.dedup_window / timedelta(hours=1),
            "tick_interval_seconds": self.tick_interval_seconds,
            "location_timeout_seconds": self.location_timeout_seconds,
            "tick_timeout_seconds": self.tick_timeout_seconds,
            "overlap_policy": self.overlap_policy.value,
        }
