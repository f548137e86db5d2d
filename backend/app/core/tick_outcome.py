"""Tick Outcome — pure summary of what one tick decided.

Invariants:
    - decisions holds exactly one EventDecision per evaluated event id
    - Counts are derived from decisions, never tracked separately
    - to_dict() is JSON-safe (API response and structured log payload)
"""

from dataclasses import dataclass, field
from datetime import datetime

from app.core.domain_types import (
    EventDecision, EventId, TickId, TickStatus, reminder_state_for,
)


@dataclass
class TickOutcome:
    tick_id: TickId
    started_at: datetime
    status: TickStatus = TickStatus.COMPLETED
    pruned: int = 0
    location_available: bool | None = None
    decisions: dict[EventId, EventDecision] = field(default_factory=dict)

    @property
    def notified(self) -> list[EventId]:
        return [
            eid for eid, d in self.decisions.items()
            if d is EventDecision.NOTIFIED
        ]

    @property
    def failed(self) -> int:
        return sum(1 for d in self.decisions.values() if d is EventDecision.FAILED)

    @property
    def skipped(self) -> int:
        return len(self.decisions) - len(self.notified) - self.failed

    def to_dict(self) -> dict:
        return {
            "tick_id": self.tick_id,
            "started_at": self.started_at.isoformat(),
            "status": self.status.value,
            "pruned": self.pruned,
            "location_available": self.location_available,
            "notified": list(self.notified),
            "skipped": self.skipped,
            "failed": self.failed,
            "events": {
                eid: {
                    "decision": d.value,
                    "state": reminder_state_for(d).value,
                }
                for eid, d in self.decisions.items()
            },
        }
