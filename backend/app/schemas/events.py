"""Event Schemas — producer payloads and cached-event views.

Invariants:
    - EventIn is permissive: per-item leniency (bad start, missing coordinate)
      is decided by the intake filter, not rejected at the boundary
    - One sync request replaces the whole cached snapshot

Design Decisions:
    - extra="ignore": the producer's event rows carry fields reminders never read
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.core.domain_types import TrackedEvent


class EventIn(BaseModel):
    """One event row as the producer sends it."""
    model_config = ConfigDict(extra="ignore")

    id: str | int
    title: str | None = None
    start_at: str | None = None
    location: str | None = None
    location_name: str | None = None
    latitude: float | None = None
    longitude: float | None = None


class EventsSyncRequest(BaseModel):
    events: list[EventIn] = Field(max_length=5_000)


class EventsSyncResponse(BaseModel):
    cached: int
    dropped: int
    changed: bool
    tick: dict | None = None


class EventResponse(BaseModel):
    id: str
    title: str
    start_at: datetime | None
    location_name: str | None
    latitude: float | None
    longitude: float | None

    @classmethod
    def from_domain(cls, event: TrackedEvent) -> "EventResponse":
        return cls(
            id=event.id,
            title=event.title,
            start_at=event.start_at,
            location_name=event.location_name,
            latitude=event.coordinate.latitude if event.coordinate else None,
            longitude=event.coordinate.longitude if event.coordinate else None,
        )
