"""Notification Content — builds the "starting soon" request for an eligible event.

Invariants:
    - Pure: all inputs passed in, output is a NotificationRequest
    - Distance shown is the same haversine value the radius gate used
    - Missing location name falls back to a fixed phrase, never an empty string
"""

from datetime import datetime

from app.core.domain_types import EventId, NotificationRequest, TrackedEvent
from app.core.eligibility import minutes_until

REMINDER_TITLE = "Event Starting Soon!"
FALLBACK_LOCATION = "the event location"
TEST_TITLE = "Test Notification"
TEST_BODY = "If you see this, notifications are working correctly!"


def _format_minutes(minutes: float) -> str:
    rounded = max(1, round(minutes))
    return "1 minute" if rounded == 1 else f"{rounded} minutes"


def build_reminder(
    event: TrackedEvent, now: datetime, distance_km: float,
) -> NotificationRequest:
    """Request for an event that passed the window and radius gates."""
    location = event.location_name or FALLBACK_LOCATION
    remaining = minutes_until(event.start_at, now)
    body = (
        f"\"{event.title}\" is starting in {_format_minutes(remaining)} "
        f"at {location}! You're {distance_km:.2f} km away."
    )
    return NotificationRequest(
        event_id=event.id,
        title=REMINDER_TITLE,
        body=body,
        data={
            "eventId": event.id,
            "eventTitle": event.title,
            "eventLocationName": event.location_name,
            "eventTime": event.start_at.isoformat(),
            "distanceKm": round(distance_km, 3),
        },
    )


def build_test_notification() -> NotificationRequest:
    return NotificationRequest(
        event_id=EventId("test"), title=TEST_TITLE, body=TEST_BODY,
    )
