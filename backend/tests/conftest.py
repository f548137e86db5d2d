"""Root conftest — shared test configuration and fixtures.

Invariants:
    - No test touches the network or a real database file
    - Scheduler fixture runs on fakes with a clock pinned to T0
"""

import os

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("NOTIFICATION_SENDER", "log")
os.environ.setdefault("TICK_DRIVER_AUTOSTART", "false")

from app.core.reminder_config import ReminderConfig  # noqa: E402
from app.services.event_cache import EventCache  # noqa: E402
from app.services.notification_ledger import NotificationLedger  # noqa: E402
from app.services.reminder_scheduler import ReminderScheduler  # noqa: E402
from tests.fakes import T0, FakeLocation, FakeSender, FlakyStore  # noqa: E402


@pytest.fixture
def store():
    return FlakyStore()


@pytest.fixture
def sender():
    return FakeSender()


@pytest.fixture
def location():
    return FakeLocation()


@pytest.fixture
def config():
    return ReminderConfig()


@pytest.fixture
def cache(store):
    return EventCache(store)


@pytest.fixture
def ledger(store):
    return NotificationLedger(store)


@pytest.fixture
def scheduler(cache, ledger, location, sender, config):
    return ReminderScheduler(
        cache=cache, ledger=ledger, location=location,
        sender=sender, config=config, clock=lambda: T0,
    )
