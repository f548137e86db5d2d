"""Error Hierarchy — typed, categorized exceptions for all reminder failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Input/config errors (400-level) are recoverable; capability errors (500-level) degrade
    - to_response() produces the REST envelope
    - No internal details leaked in user-facing messages
    - Inside a tick these are caught per event; none escapes on_tick

Design Decisions:
    - Single hierarchy with ReminderError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CAPABILITY = "capability"
    DELIVERY = "delivery"
    CONFLICT = "conflict"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_id: str | None = None
    tick_id: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class ReminderError(Exception):
    """Base exception for all reminder service errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "event_id": self.context.event_id,
                    "tick_id": self.context.tick_id,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Input Errors (400-level) ───────────────────────────────────

class MalformedInputError(ReminderError):
    """Stored or submitted data cannot be interpreted (bad timestamp, coordinate, payload)."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "MALFORMED_INPUT", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.field = field


class ConfigurationError(ReminderError):
    """Scheduler configuration rejected; the previous configuration stays active."""
    def __init__(self, message: str, option: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_CONFIGURATION", ErrorCategory.CONFIGURATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.option = option


class ResourceNotFoundError(ReminderError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


# ─── Capability Errors (500-level) ──────────────────────────────

class CapabilityUnavailableError(ReminderError):
    """An external capability (location, persistence) is temporarily failing."""
    def __init__(
        self,
        message: str,
        capability: str,
        code: str = "CAPABILITY_UNAVAILABLE",
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{capability} unavailable: {message}",
            code, ErrorCategory.CAPABILITY,
            ErrorSeverity.WARNING, context, 503,
        )
        self.capability = capability


class LocationUnavailableError(CapabilityUnavailableError):
    """Current position could not be determined (timeout, no fix, stale fix)."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(message, "location", "LOCATION_UNAVAILABLE", context)


class PersistenceError(CapabilityUnavailableError):
    """Durable key-value store read or write failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"{operation} failed: {message}", "persistence",
            "PERSISTENCE_ERROR", context,
        )
        self.operation = operation


class DeliveryRejectedError(ReminderError):
    """Notification capability declined a request; the event stays pending."""
    def __init__(
        self,
        reason: str,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = retry_after_ms
        super().__init__(
            f"Notification delivery rejected: {reason}",
            "DELIVERY_REJECTED", ErrorCategory.DELIVERY,
            ErrorSeverity.WARNING, ctx, 502,
        )
        self.reason = reason


class ConcurrentTickError(ReminderError):
    """A tick was invoked while another one holds the tick guard."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Another tick is already running",
            "CONCURRENT_TICK", ErrorCategory.CONFLICT,
            ErrorSeverity.INFO, context, 409,
        )
