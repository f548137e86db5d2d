"""Eligibility Window — decides whether an event is inside its reminder trigger band.

Invariants:
    - Band is (lead - tolerance, lead + tolerance] minutes before start
    - Lower bound exclusive, upper bound inclusive
    - tolerance >= tick_interval / 2, otherwise a tick can straddle the band

Design Decisions:
    - Minutes as float: ticks jitter, integer minutes would widen the band silently
"""

from datetime import datetime


def minutes_until(start_at: datetime, now: datetime) -> float:
    """Signed minutes from now to start_at (negative once started)."""
    return (start_at - now).total_seconds() / 60


def is_eligible(
    start_at: datetime, now: datetime,
    lead_minutes: float, tolerance_minutes: float,
) -> bool:
    """True iff start_at is inside the trigger band as seen from now."""
    remaining = minutes_until(start_at, now)
    return (
        lead_minutes - tolerance_minutes
        < remaining
        <= lead_minutes + tolerance_minutes
    )


def min_tolerance_minutes(tick_interval_seconds: float) -> float:
    """Smallest tolerance that guarantees every band is observed by some tick."""
    return tick_interval_seconds / 120
