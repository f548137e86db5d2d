"""Snapshot Codec — bytes <-> domain objects for the two persisted collections.

Invariants:
    - Each collection is one JSON array under one key (events, ledger records)
    - Decoding is per item: one bad entry never discards the rest of the snapshot
    - Entries without an id are dropped; bad start_at / coordinates decode to None
    - A payload that is not a JSON array raises MalformedInputError
    - Naive timestamps are taken as UTC; epoch milliseconds are accepted for notified_at

Design Decisions:
    - Pydantic models describe the stored shape; domain dataclasses stay framework-free
    - Lenient "before" validators turn malformed fields into None so the scheduler
      can skip the single event instead of losing the whole cache
"""

import json
import math
from datetime import datetime, timezone
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from app.core.domain_types import (
    Coordinate, EventId, NotificationRecord, TrackedEvent,
)
from app.core.errors import MalformedInputError


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> datetime | None:
    """ISO-8601 string or datetime -> aware UTC datetime, else None."""
    if isinstance(value, datetime):
        return _as_utc(value)
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return _as_utc(datetime.fromisoformat(text))
    except ValueError:
        return None


def _finite_or_none(value: Any, bound: float) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or abs(number) > bound:
        return None
    return number


class StoredEvent(BaseModel):
    """Stored shape of one cached event (mirrors the producer's payload)."""
    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    title: str = ""
    start_at: datetime | None = None
    location_name: str | None = None
    location: str | None = None
    latitude: float | None = None
    longitude: float | None = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) and not isinstance(v, bool) else v

    @field_validator("title", mode="before")
    @classmethod
    def default_title(cls, v: Any) -> Any:
        return "" if v is None else str(v)

    @field_validator("start_at", mode="before")
    @classmethod
    def lenient_start(cls, v: Any) -> datetime | None:
        return parse_timestamp(v)

    @field_validator("latitude", mode="before")
    @classmethod
    def lenient_latitude(cls, v: Any) -> float | None:
        return _finite_or_none(v, 90.0)

    @field_validator("longitude", mode="before")
    @classmethod
    def lenient_longitude(cls, v: Any) -> float | None:
        return _finite_or_none(v, 180.0)

    def to_domain(self) -> TrackedEvent:
        coordinate = None
        if self.latitude is not None and self.longitude is not None:
            coordinate = Coordinate(self.latitude, self.longitude)
        return TrackedEvent(
            id=EventId(self.id),
            title=self.title,
            start_at=self.start_at,
            location_name=self.location_name or self.location or None,
            coordinate=coordinate,
        )

    @classmethod
    def from_domain(cls, event: TrackedEvent) -> "StoredEvent":
        return cls(
            id=event.id,
            title=event.title,
            start_at=event.start_at,
            location_name=event.location_name,
            latitude=event.coordinate.latitude if event.coordinate else None,
            longitude=event.coordinate.longitude if event.coordinate else None,
        )


class StoredRecord(BaseModel):
    """Stored shape of one ledger record."""
    model_config = ConfigDict(extra="ignore")

    event_id: str = Field(min_length=1)
    notified_at: datetime

    @field_validator("notified_at", mode="before")
    @classmethod
    def accept_epoch_ms(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            try:
                return datetime.fromtimestamp(v / 1000, tz=timezone.utc)
            except (OverflowError, OSError, ValueError):
                raise ValueError(f"epoch milliseconds out of range: {v}")
        return parse_timestamp(v) or v

    def to_domain(self) -> NotificationRecord:
        return NotificationRecord(EventId(self.event_id), _as_utc(self.notified_at))


def _load_array(payload: bytes, field: str) -> list:
    try:
        items = json.loads(payload)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedInputError(f"{field} snapshot is not valid JSON: {e}", field)
    if not isinstance(items, list):
        raise MalformedInputError(f"{field} snapshot is not a JSON array", field)
    return items


def decode_events(payload: bytes) -> tuple[list[TrackedEvent], int]:
    """Decode the event snapshot. Returns (events, dropped_entry_count)."""
    events: list[TrackedEvent] = []
    dropped = 0
    for item in _load_array(payload, "events"):
        try:
            events.append(StoredEvent.model_validate(item).to_domain())
        except ValidationError:
            dropped += 1
    return events, dropped


def encode_events(events: Iterable[TrackedEvent]) -> bytes:
    return json.dumps([
        StoredEvent.from_domain(e).model_dump(mode="json", exclude={"location"})
        for e in events
    ]).encode("utf-8")


def decode_records(payload: bytes) -> tuple[list[NotificationRecord], int]:
    """Decode the ledger snapshot. Returns (records, dropped_entry_count)."""
    records: list[NotificationRecord] = []
    dropped = 0
    for item in _load_array(payload, "ledger"):
        try:
            records.append(StoredRecord.model_validate(item).to_domain())
        except ValidationError:
            dropped += 1
    return records, dropped


def encode_records(records: Iterable[NotificationRecord]) -> bytes:
    return json.dumps([
        {"event_id": r.event_id, "notified_at": r.notified_at.isoformat()}
        for r in records
    ]).encode("utf-8")
