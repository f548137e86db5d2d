"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - EventId wraps the producer's opaque string id; never compare raw strings
    - Coordinate is immutable; latitude in [-90, 90], longitude in [-180, 180]
    - All timestamps are timezone-aware (UTC) once they enter the core
    - All valid states encoded as Enums, no raw string matching

Design Decisions:
    - NewType for identity, frozen dataclasses for values: hashable, cheap to compare
    - str Enums: serialize to JSON without custom encoders (API + tick outcome logs)
    - "Unavailable" location is plain None at the boundary (Coordinate | None)
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, NewType


# ─── Identity Types ──────────────────────────────────────────────

EventId = NewType("EventId", str)
TickId = NewType("TickId", str)


# ─── Value Types ─────────────────────────────────────────────────

@dataclass(frozen=True)
class Coordinate:
    """WGS84 position in decimal degrees."""
    latitude: float
    longitude: float


@dataclass(frozen=True)
class TrackedEvent:
    """Snapshot of one trackable event as last pushed by the producer.

    start_at is None when the stored value was absent or unparseable;
    coordinate is None for undirected events.
    """
    id: EventId
    title: str
    start_at: datetime | None = None
    location_name: str | None = None
    coordinate: Coordinate | None = None


@dataclass(frozen=True)
class NotificationRecord:
    """Dedup ledger entry: first accepted emission for an event."""
    event_id: EventId
    notified_at: datetime


@dataclass(frozen=True)
class NotificationRequest:
    """Payload handed to the delivery capability."""
    event_id: EventId
    title: str
    body: str
    data: dict[str, Any] = field(default_factory=dict)


# ─── Enums ───────────────────────────────────────────────────────

class DeliveryStatus(str, Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome reported by the delivery capability for one request."""
    status: DeliveryStatus
    reason: str | None = None

    @classmethod
    def accepted(cls) -> "DeliveryResult":
        return cls(DeliveryStatus.ACCEPTED)

    @classmethod
    def rejected(cls, reason: str) -> "DeliveryResult":
        return cls(DeliveryStatus.REJECTED, reason)

    @property
    def is_accepted(self) -> bool:
        return self.status is DeliveryStatus.ACCEPTED


class ReminderState(str, Enum):
    """Where an event sits relative to the ledger at a given tick."""
    UNSEEN = "unseen"
    PENDING = "pending"
    NOTIFIED = "notified"
    FORGOTTEN = "forgotten"


class EventDecision(str, Enum):
    """Per-event result of one tick evaluation."""
    NOTIFIED = "notified"
    ALREADY_NOTIFIED = "already_notified"
    MALFORMED_START = "malformed_start"
    OUTSIDE_WINDOW = "outside_window"
    NO_COORDINATE = "no_coordinate"
    LOCATION_UNAVAILABLE = "location_unavailable"
    OUT_OF_RANGE = "out_of_range"
    DELIVERY_REJECTED = "delivery_rejected"
    FAILED = "failed"


class TickStatus(str, Enum):
    """Overall result of one tick."""
    COMPLETED = "completed"
    NO_EVENTS = "no_events"
    NOT_PERMITTED = "not_permitted"
    DROPPED_OVERLAP = "dropped_overlap"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


class OverlapPolicy(str, Enum):
    """What an overlapping tick does while another holds the guard."""
    DROP = "drop"
    WAIT = "wait"


_DECISION_STATES: dict[EventDecision, ReminderState] = {
    EventDecision.NOTIFIED: ReminderState.NOTIFIED,
    EventDecision.ALREADY_NOTIFIED: ReminderState.NOTIFIED,
    EventDecision.MALFORMED_START: ReminderState.UNSEEN,
    EventDecision.OUTSIDE_WINDOW: ReminderState.UNSEEN,
    EventDecision.NO_COORDINATE: ReminderState.UNSEEN,
    EventDecision.LOCATION_UNAVAILABLE: ReminderState.PENDING,
    EventDecision.OUT_OF_RANGE: ReminderState.PENDING,
    EventDecision.DELIVERY_REJECTED: ReminderState.PENDING,
    EventDecision.FAILED: ReminderState.PENDING,
}


def reminder_state_for(decision: EventDecision) -> ReminderState:
    """Map a tick decision to the event's ledger state after that tick."""
    return _DECISION_STATES[decision]
