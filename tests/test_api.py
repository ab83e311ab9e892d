from __future__ import annotations

import asyncio
import sqlite3
import time
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from event_planner_api.app.core.config import settings
from event_planner_api.app.core.db import get_connection, to_db_timestamp
from event_planner_api.app.core.security import create_access_token
from event_planner_api.app.schemas.event import MAX_REMINDER_MINUTES_BEFORE
from event_planner_api.app.services.reminder_service import ReminderService


def _future(minutes: int) -> str:
    return (datetime.now(timezone.utc) + timedelta(minutes=minutes)).isoformat()


def _login(client, username="alice", password="pw1") -> dict:
    client.post("/register", json={"username": username, "password": password})
    token = client.post("/login", json={"username": username, "password": password}).json()["token"]
    return {"Authorization": f"Bearer {token}"}


def test_register_login_create_and_list_events(client):
    register = client.post("/register", json={"username": "alice", "password": "pw1"})
    assert register.status_code == 201
    assert register.json() == {"message": "User registered"}

    login = client.post("/login", json={"username": "alice", "password": "pw1"})
    assert login.status_code == 200
    headers = {"Authorization": f"Bearer {login.json()['token']}"}

    created = client.post(
        "/events",
        json={"name": "Standup", "date": _future(120), "category": "Meeting"},
        headers=headers,
    )
    assert created.status_code == 201
    body = created.json()
    assert body["message"] == "Event created"
    assert body["event"]["name"] == "Standup"
    assert body["event"]["category"] == "Meeting"
    assert body["event"]["reminderSent"] is False

    listed = client.get("/events", headers=headers)
    assert listed.status_code == 200
    assert [event["id"] for event in listed.json()] == [body["event"]["id"]]


def test_duplicate_registration_is_rejected(client):
    assert client.post("/register", json={"username": "alice", "password": "pw1"}).status_code == 201
    duplicate = client.post("/register", json={"username": "alice", "password": "other"})
    assert duplicate.status_code == 400
    assert duplicate.json() == {"error": "Username already exists"}


def test_register_validation_errors(client):
    missing = client.post("/register", json={"username": "alice"})
    assert missing.status_code == 400
    assert "error" in missing.json()

    blank = client.post("/register", json={"username": " ", "password": "pw"})
    assert blank.status_code == 400
    assert blank.json() == {"error": "username is required"}


def test_login_failures_look_the_same(client):
    client.post("/register", json={"username": "alice", "password": "pw1"})
    wrong_password = client.post("/login", json={"username": "alice", "password": "nope"})
    unknown_user = client.post("/login", json={"username": "nobody", "password": "pw1"})
    assert wrong_password.status_code == unknown_user.status_code == 400
    assert wrong_password.json() == unknown_user.json() == {"error": "Invalid credentials"}


def test_events_require_a_token(client):
    response = client.get("/events")
    assert response.status_code == 401
    assert response.json() == {"error": "No token, authorization denied"}
    assert response.headers["WWW-Authenticate"] == "Bearer"

    response = client.post("/events", json={"name": "x", "date": _future(5), "category": "Meeting"})
    assert response.status_code == 401

    blank = client.get("/events", headers={"Authorization": "Bearer "})
    assert blank.status_code == 401
    assert blank.json() == {"error": "No token, authorization denied"}


def test_invalid_and_expired_tokens_are_rejected(client):
    invalid = client.get("/events", headers={"Authorization": "Bearer not-a-token"})
    assert invalid.status_code == 401
    assert invalid.json() == {"error": "Token is not valid"}

    expired_token = create_access_token(1, expires_delta=60, now=0)
    expired = client.get("/events", headers={"Authorization": f"Bearer {expired_token}"})
    assert expired.status_code == 401
    assert expired.json() == {"error": "Token has expired"}


def test_token_of_deleted_user_is_rejected(client):
    headers = _login(client)
    conn = get_connection()
    try:
        conn.execute("DELETE FROM users WHERE username = 'alice'")
        conn.commit()
    finally:
        conn.close()
    response = client.get("/events", headers=headers)
    assert response.status_code == 401
    assert response.json() == {"error": "Token is not valid"}


def test_create_event_validation(client):
    headers = _login(client)
    bad_category = client.post(
        "/events",
        json={"name": "Lunch", "date": _future(60), "category": "Party"},
        headers=headers,
    )
    assert bad_category.status_code == 400
    assert "category" in bad_category.json()["error"]

    missing_date = client.post("/events", json={"name": "Lunch", "category": "Meeting"}, headers=headers)
    assert missing_date.status_code == 400

    blank_name = client.post(
        "/events",
        json={"name": "  ", "date": _future(60), "category": "Meeting"},
        headers=headers,
    )
    assert blank_name.status_code == 400


def _count(table: str) -> int:
    conn = get_connection()
    try:
        return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
    finally:
        conn.close()


def test_event_before_year_1000_is_stored_and_listed(client):
    headers = _login(client)
    client.post(
        "/events", json={"name": "Modern", "date": "2030-01-01T00:00:00Z", "category": "Meeting"}, headers=headers
    )
    created = client.post(
        "/events",
        json={"name": "Ancient", "date": "0999-05-05T00:00:00Z", "category": "Meeting", "reminderMinutesBefore": 10},
        headers=headers,
    )
    assert created.status_code == 201
    assert created.json()["event"]["date"].startswith("0999-05-05T00:00:00")

    listed = client.get("/events", headers=headers)
    assert listed.status_code == 200
    assert [e["name"] for e in listed.json()] == ["Ancient", "Modern"]
    # The fire time is long past, so nothing was queued.
    assert _count("reminders") == 0


@pytest.mark.parametrize(
    "payload",
    [
        {"date": _future(60), "reminderMinutesBefore": 10**10},
        {"date": _future(60), "reminderMinutesBefore": 2**64},
        {"date": _future(60), "reminderMinutesBefore": MAX_REMINDER_MINUTES_BEFORE + 1},
        {"date": "0001-01-01T00:00:00Z", "reminderMinutesBefore": 10},
        {"date": "0001-01-01T00:00:00+05:00"},
        {"date": "9999-12-31T23:00:00-05:00"},
    ],
)
def test_out_of_range_dates_and_offsets_are_rejected(client, payload):
    headers = _login(client)
    response = client.post("/events", json={"name": "Edge", "category": "Meeting", **payload}, headers=headers)
    assert response.status_code == 400
    assert "error" in response.json()
    assert _count("events") == 0
    assert _count("reminders") == 0


def test_longest_reminder_offset_is_accepted(client):
    headers = _login(client)
    response = client.post(
        "/events",
        json={
            "name": "Anniversary",
            "date": _future(MAX_REMINDER_MINUTES_BEFORE + 60),
            "category": "Birthday",
            "reminderMinutesBefore": MAX_REMINDER_MINUTES_BEFORE,
        },
        headers=headers,
    )
    assert response.status_code == 201
    assert _count("reminders") == 1


def test_event_is_not_kept_when_its_reminder_cannot_be_stored(client, monkeypatch):
    headers = _login(client)

    def broken_arm(conn, event, now=None):
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(ReminderService, "arm", broken_arm)
    response = client.post(
        "/events",
        json={"name": "Dentist", "date": _future(60), "category": "Appointment", "reminderMinutesBefore": 10},
        headers=headers,
    )
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}
    assert _count("events") == 0
    assert client.get("/events", headers=headers).json() == []


def test_list_filters_and_sorting(client):
    headers = _login(client)
    for name, minutes, category in [
        ("Review", 300, "Meeting"),
        ("Cake", 100, "Birthday"),
        ("Standup", 30, "Meeting"),
    ]:
        client.post("/events", json={"name": name, "date": _future(minutes), "category": category}, headers=headers)

    meetings = client.get("/events", params={"filterCategory": "Meeting"}, headers=headers).json()
    assert [e["name"] for e in meetings] == ["Standup", "Review"]

    by_category = client.get("/events", params={"sortBy": "category"}, headers=headers).json()
    assert [e["name"] for e in by_category] == ["Cake", "Standup", "Review"]

    unsent = client.get("/events", params={"reminderStatus": "false"}, headers=headers).json()
    assert len(unsent) == 3
    sent = client.get("/events", params={"reminderStatus": "true"}, headers=headers).json()
    assert sent == []

    unknown = client.get("/events", params={"filterCategory": "Party"}, headers=headers)
    assert unknown.status_code == 200
    assert unknown.json() == []

    by_name = client.get("/events", params={"sortBy": "name"}, headers=headers).json()
    assert [e["name"] for e in by_name] == ["Cake", "Standup", "Review"]


def test_users_only_see_their_own_events(client):
    alice = _login(client, "alice", "pw1")
    bob = _login(client, "bob", "pw2")
    created = client.post(
        "/events", json={"name": "Private", "date": _future(60), "category": "Appointment"}, headers=alice
    ).json()["event"]

    assert client.get("/events", headers=bob).json() == []
    assert client.get(f"/events/{created['id']}", headers=bob).status_code == 404
    assert client.delete(f"/events/{created['id']}", headers=bob).status_code == 404
    assert client.get(f"/events/{created['id']}", headers=alice).status_code == 200


def test_reminder_flow_through_the_api(client):
    headers = _login(client)
    event = client.post(
        "/events",
        json={"name": "Dentist", "date": _future(60), "category": "Appointment", "reminderMinutesBefore": 10},
        headers=headers,
    ).json()["event"]
    assert event["reminderMinutesBefore"] == 10

    skipped = client.post(
        "/events",
        json={"name": "Soon", "date": _future(10), "category": "Meeting", "reminderMinutesBefore": 15},
        headers=headers,
    ).json()["event"]

    fired = asyncio.run(ReminderService.run_due(now=datetime.now(timezone.utc) + timedelta(minutes=51)))
    assert fired == 1

    sent = client.get("/events", params={"reminderStatus": "true"}, headers=headers).json()
    assert [e["id"] for e in sent] == [event["id"]]
    unsent = client.get("/events", params={"reminderStatus": "false"}, headers=headers).json()
    assert [e["id"] for e in unsent] == [skipped["id"]]

    notifications = client.get("/notifications", headers=headers).json()
    assert [n["eventId"] for n in notifications] == [event["id"]]
    assert notifications[0]["content"] == 'Reminder: "Dentist" is happening soon!'


def test_delete_event(client):
    headers = _login(client)
    event = client.post(
        "/events", json={"name": "Standup", "date": _future(60), "category": "Meeting"}, headers=headers
    ).json()["event"]
    assert client.delete(f"/events/{event['id']}", headers=headers).status_code == 204
    assert client.get(f"/events/{event['id']}", headers=headers).status_code == 404


def test_reminder_loop_fires_due_reminders_while_app_runs():
    from event_planner_api.app.main import create_app

    config = replace(settings, reminders_enabled=True, reminder_poll_seconds=0.05)
    with TestClient(create_app(config)) as client:
        headers = _login(client)
        event = client.post(
            "/events",
            json={"name": "Dentist", "date": _future(60), "category": "Appointment", "reminderMinutesBefore": 10},
            headers=headers,
        ).json()["event"]
        # Make the queued reminder due now.
        conn = get_connection()
        try:
            conn.execute(
                "UPDATE reminders SET fire_at = ? WHERE event_id = ?",
                (to_db_timestamp(datetime.now(timezone.utc) - timedelta(minutes=1)), event["id"]),
            )
            conn.commit()
        finally:
            conn.close()

        sent = []
        deadline = time.monotonic() + 5
        while not sent and time.monotonic() < deadline:
            time.sleep(0.05)
            sent = client.get("/events", params={"reminderStatus": "true"}, headers=headers).json()
        notifications = client.get("/notifications", headers=headers).json()

    assert [e["id"] for e in sent] == [event["id"]]
    assert [n["eventId"] for n in notifications] == [event["id"]]
