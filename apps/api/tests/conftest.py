"""Shared pytest fixtures: fake repos, a controllable clock and an API client."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

import fakes
from fanline.core.config import Settings
from fanline.main import create_app
from fanline.realtime.bus import EventBus
from fanline.services import (
    chat_sessions_service,
    live_streams_service,
    presence_service,
    subscriptions_service,
)

TEST_SETTINGS = Settings(
    database_url="postgresql://tester@db.example:5432/postgres",
    meter_interval_sec=0.02,
)


class Clock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


@pytest.fixture
def store(monkeypatch: pytest.MonkeyPatch) -> fakes.FakeStore:
    s = fakes.FakeStore()
    fakes.install(monkeypatch, s)
    return s


@pytest.fixture
def engine() -> fakes.FakeEngine:
    return fakes.FakeEngine()


@pytest.fixture
def clock(monkeypatch: pytest.MonkeyPatch) -> Clock:
    c = Clock(datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc))
    for module in (chat_sessions_service, presence_service, live_streams_service, subscriptions_service):
        monkeypatch.setattr(module, "_now", c)
    return c


class RecordingBus(EventBus):
    """EventBus that also remembers what was published (no loop needed)."""

    def __init__(self):
        super().__init__()
        self.published = []

    def publish(self, topic, event):
        self.published.append((topic, event))
        return super().publish(topic, event)


@pytest.fixture
def bus() -> RecordingBus:
    return RecordingBus()


@pytest.fixture
def app(store, engine, clock):
    return create_app(settings=TEST_SETTINGS, engine=engine)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


def auth(profile: dict) -> dict:
    return {"X-Profile-Id": profile["id"]}
