from __future__ import annotations

import os

# Settings are read at import time, so configure the environment first.
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("REMINDERS_ENABLED", "false")

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from event_planner_api.app.core.config import settings
from event_planner_api.app.core.db import init_db
from event_planner_api.app.schemas.event import EventCategory, EventCreate
from event_planner_api.app.services.event_service import EventService
from event_planner_api.app.services.user_service import UserService


@pytest.fixture(autouse=True)
def database(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "database_url", str(tmp_path / "events.db"))
    monkeypatch.setattr(settings, "secret_key", "test-secret-key")
    # Keep hashing fast; the work factor itself is covered in test_security.
    monkeypatch.setattr(settings, "password_hash_iterations", 1_000)
    monkeypatch.setattr(settings, "reminders_enabled", False)
    init_db()
    yield


@pytest.fixture
def client():
    from event_planner_api.app.main import create_app

    with TestClient(create_app()) as test_client:
        yield test_client


@pytest.fixture
def now() -> datetime:
    return datetime.now(timezone.utc)


@pytest.fixture
def user():
    return asyncio.run(UserService.create_user("alice", "pw1"))


@pytest.fixture
def make_event(user, now):
    def _make(
        name: str = "Standup",
        minutes_from_now: int = 60,
        category: EventCategory = EventCategory.MEETING,
        reminder_minutes_before: int | None = None,
        owner_id: int | None = None,
    ):
        data = EventCreate(
            name=name,
            date=now + timedelta(minutes=minutes_from_now),
            category=category,
            reminder_minutes_before=reminder_minutes_before,
        )
        return asyncio.run(EventService.create_event(owner_id or user.id, data))

    return _make
