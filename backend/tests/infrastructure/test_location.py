"""Location Providers — freshness of reported fixes and the static source."""

from datetime import timedelta

import pytest

from app.core.domain_types import Coordinate
from app.core.errors import LocationUnavailableError
from app.infrastructure.location import ReportedLocationProvider, StaticLocationProvider
from tests.fakes import NEARBY, T0, VENUE


def _provider(now_box: dict) -> ReportedLocationProvider:
    return ReportedLocationProvider(max_age=timedelta(minutes=5), clock=lambda: now_box["now"])


async def test_no_fix_is_unavailable():
    with pytest.raises(LocationUnavailableError):
        await _provider({"now": T0}).get_current_coordinate(1.0)


async def test_fresh_fix_is_returned():
    clock = {"now": T0}
    provider = _provider(clock)
    provider.report(NEARBY)
    clock["now"] = T0 + timedelta(minutes=4)
    assert await provider.get_current_coordinate(1.0) == NEARBY
    assert provider.last_fix == (NEARBY, T0)


async def test_stale_fix_is_unavailable():
    clock = {"now": T0}
    provider = _provider(clock)
    provider.report(NEARBY, fixed_at=T0 - timedelta(minutes=6))
    with pytest.raises(LocationUnavailableError, match="360s old"):
        await provider.get_current_coordinate(1.0)


async def test_newer_report_replaces_old():
    provider = _provider({"now": T0})
    provider.report(NEARBY)
    provider.report(Coordinate(1.0, 2.0))
    assert await provider.get_current_coordinate(1.0) == Coordinate(1.0, 2.0)


async def test_static_provider():
    assert await StaticLocationProvider(VENUE).get_current_coordinate(1.0) == VENUE


async def test_naive_fix_time_is_taken_as_utc():
    clock = {"now": T0}
    provider = _provider(clock)
    provider.report(NEARBY, fixed_at=T0.replace(tzinfo=None) - timedelta(minutes=1))

    assert await provider.get_current_coordinate(1.0) == NEARBY
    assert provider.last_fix == (NEARBY, T0 - timedelta(minutes=1))

    clock["now"] = T0 + timedelta(minutes=5)
    with pytest.raises(LocationUnavailableError, match="360s old"):
        await provider.get_current_coordinate(1.0)


async def test_future_fix_time_is_clamped_and_still_ages_out():
    clock = {"now": T0}
    provider = _provider(clock)
    provider.report(NEARBY, fixed_at=T0 + timedelta(days=365))
    assert provider.last_fix == (NEARBY, T0)

    clock["now"] = T0 + timedelta(minutes=6)
    with pytest.raises(LocationUnavailableError):
        await provider.get_current_coordinate(1.0)
