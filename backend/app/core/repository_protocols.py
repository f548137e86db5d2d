"""Boundary Protocols — contracts between the reminder core and its collaborators.

Invariants:
    - Core NEVER imports from shell; dependency arrows point inward only
    - All IO (persistence, tick lease, location, delivery) accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
    - Async in Protocol: implementations do IO; the pure evaluators that consume
      their results are never async themselves
"""

from datetime import timedelta
from typing import Protocol

from app.core.domain_types import Coordinate, DeliveryResult, NotificationRequest


class KeyValueStore(Protocol):
    """Durable whole-value store, one logical key per collection.

    get returns None when the key was never written.
    Both methods raise PersistenceError on failure.
    """
    async def get(self, key: str) -> bytes | None: ...
    async def set(self, key: str, value: bytes) -> None: ...


class LocationProvider(Protocol):
    """Current device position.

    Returns None (Unavailable) when no usable fix exists, and may raise
    LocationUnavailableError; callers bound the call with `timeout`.
    """
    async def get_current_coordinate(self, timeout: float) -> Coordinate | None: ...


class NotificationSender(Protocol):
    """Delivery capability: never raises for a declined send, returns rejected()."""
    async def send(self, request: NotificationRequest) -> DeliveryResult: ...


class TickLock(Protocol):
    """Tick lease shared by every process that ticks over the same stores.

    acquire returns False while another owner holds an unexpired lease; an
    expired lease can be taken over. release only drops the caller's own lease.
    Both methods raise PersistenceError on failure.
    """
    async def acquire(self, owner: str, ttl: timedelta) -> bool: ...
    async def release(self, owner: str) -> None: ...
