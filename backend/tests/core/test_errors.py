"""Errors — hierarchy, HTTP status and response envelope."""

from app.core.errors import (
    CapabilityUnavailableError, ConcurrentTickError, DeliveryRejectedError,
    LocationUnavailableError, PersistenceError, ReminderError, ResourceNotFoundError,
)


def test_capability_errors_share_a_base():
    assert issubclass(LocationUnavailableError, CapabilityUnavailableError)
    assert issubclass(PersistenceError, CapabilityUnavailableError)
    assert LocationUnavailableError("no fix").http_status == 503


def test_persistence_error_names_operation():
    err = PersistenceError("disk full", "set")
    assert err.code == "PERSISTENCE_ERROR"
    assert err.operation == "set"
    assert "set failed: disk full" in err.message


def test_delivery_rejected_carries_retry_hint():
    err = DeliveryRejectedError("rate limited", retry_after_ms=1500)
    body = err.to_response()["error"]
    assert err.reason == "rate limited"
    assert body["code"] == "DELIVERY_REJECTED"
    assert body["context"]["retry_after_ms"] == 1500


def test_response_envelope_shape():
    body = ResourceNotFoundError("Reminder", "evt-9").to_response()["error"]
    assert body["message"] == "Reminder 'evt-9' not found"
    assert body["category"] == "resource_not_found"
    assert set(body) == {"code", "message", "category", "severity", "timestamp", "context"}


def test_concurrent_tick_is_conflict():
    err = ConcurrentTickError()
    assert isinstance(err, ReminderError)
    assert err.http_status == 409
