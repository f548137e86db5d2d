"""Reminders routes — manual tick, ledger views, cancellation and config."""

from datetime import datetime, timedelta, timezone

from app.infrastructure.tick_lock import SqlTickLock
from tests.fakes import NEARBY, VENUE


async def _ready_with_event(client, event_id: str = "a"):
    await client.put("/api/v1/permissions", json={
        "notifications_permitted": True, "location_permitted": True,
    })
    await client.post("/api/v1/location", json={
        "latitude": NEARBY.latitude, "longitude": NEARBY.longitude,
    })
    start = datetime.now(timezone.utc) + timedelta(minutes=2)
    await client.put("/api/v1/events", json={"events": [{
        "id": event_id, "title": "Guest Lecture", "start_at": start.isoformat(),
        "latitude": VENUE.latitude, "longitude": VENUE.longitude,
    }]})


async def test_manual_tick_returns_outcome(client):
    res = await client.post("/api/v1/reminders/tick")
    assert res.status_code == 200
    assert res.json()["status"] == "not_permitted"


async def test_manual_tick_after_notification_is_deduplicated(client, api_sender):
    await _ready_with_event(client)
    res = await client.post("/api/v1/reminders/tick")
    assert res.json()["events"]["a"] == {
        "decision": "already_notified", "state": "notified",
    }
    assert api_sender.sent_ids == ["a"]


async def test_overlapping_manual_tick_conflicts(client, runtime):
    await client.put("/api/v1/permissions", json={
        "notifications_permitted": True, "location_permitted": True,
    })
    async with runtime.scheduler._guard:
        res = await client.post("/api/v1/reminders/tick")
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "CONCURRENT_TICK"


async def test_manual_tick_conflicts_while_reminder_tick_holds_the_lease(
    client, manager, api_sender,
):
    await _ready_with_event(client, "b")
    api_sender.sent.clear()
    await client.delete("/api/v1/reminders")
    await SqlTickLock(manager).acquire("reminder-tick-cli", timedelta(minutes=1))

    res = await client.post("/api/v1/reminders/tick")

    assert res.status_code == 409
    assert api_sender.sent == []


async def test_list_and_cancel_reminders(client):
    await _ready_with_event(client)

    listed = await client.get("/api/v1/reminders")
    assert [(r["event_id"], r["state"]) for r in listed.json()] == [("a", "notified")]

    assert (await client.delete("/api/v1/reminders/a")).status_code == 204
    missing = await client.delete("/api/v1/reminders/a")
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "RESOURCE_NOT_FOUND"


async def test_forgotten_state_after_event_removed(client):
    await _ready_with_event(client)
    await client.put("/api/v1/events", json={"events": []})
    listed = await client.get("/api/v1/reminders")
    assert listed.json()[0]["state"] == "forgotten"


async def test_cancel_all(client):
    await _ready_with_event(client)
    assert (await client.delete("/api/v1/reminders")).status_code == 204
    assert (await client.get("/api/v1/reminders")).json() == []


async def test_config_round_trip(client):
    res = await client.put("/api/v1/reminders/config", json={
        "radius_km": 2.5, "dedup_hours": 12, "overlap_policy": "wait",
    })
    assert res.status_code == 200
    config = (await client.get("/api/v1/reminders/config")).json()
    assert config["radius_km"] == 2.5
    assert config["dedup_window_hours"] == 12
    assert config["overlap_policy"] == "wait"


async def test_inconsistent_config_rejected_and_kept(client):
    res = await client.put("/api/v1/reminders/config", json={"tolerance_minutes": 0.1})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_CONFIGURATION"
    config = (await client.get("/api/v1/reminders/config")).json()
    assert config["tolerance_minutes"] == 0.5


async def test_unknown_config_field_rejected(client):
    res = await client.put("/api/v1/reminders/config", json={"radius": 3})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_test_notification(client, api_sender):
    res = await client.post("/api/v1/reminders/test-notification")
    assert res.json() == {"status": "accepted", "reason": None}
    assert api_sender.sent_ids == ["test"]
