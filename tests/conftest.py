"""Shared fixtures: a hand-driven clock, an event recorder and a fake client."""
from unittest.mock import AsyncMock, MagicMock

import pytest

import token_counter
from api import GeminiClient
from models import ChatSettings
from session import EventType, SessionController, StreamScheduler


class ManualTimer:
    def __init__(self, interval_ms, on_tick):
        self.interval_ms = interval_ms
        self.on_tick = on_tick
        self.active = True

    def cancel(self):
        self.active = False

    def fire(self):
        if not self.active:
            return
        if not self.on_tick():
            self.active = False


class ManualClock:
    """Stands in for session.timers.schedule; ticks only when told to."""

    def __init__(self):
        self.timers = []

    def schedule(self, interval_ms, on_tick):
        timer = ManualTimer(interval_ms, on_tick)
        self.timers.append(timer)
        return timer

    def tick(self, count=1):
        for _ in range(count):
            for timer in list(self.timers):
                timer.fire()

    def run_all(self, limit=10000):
        while limit and any(timer.active for timer in self.timers):
            self.tick()
            limit -= 1


class RecordingSink:
    def __init__(self):
        self.events = []

    def __call__(self, event):
        self.events.append(event)

    def types(self):
        return [event.type for event in self.events]

    def of_type(self, event_type):
        return [event for event in self.events if event.type == event_type]

    def chunks(self):
        return [event.data["text"] for event in self.of_type(EventType.STREAM_CHUNK)]


@pytest.fixture(autouse=True)
def offline_token_counter(monkeypatch):
    """Never download tokenizer files during tests."""
    counter = token_counter.TokenCounter()
    counter._load_failed = True
    monkeypatch.setattr(token_counter, "_counter", counter)
    return counter


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    monkeypatch.setenv("GEMINI_CHAT_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("GEMINI_MODEL", raising=False)
    return tmp_path / "config"


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def client():
    fake = MagicMock(spec=GeminiClient)
    fake.complete = AsyncMock(return_value="Hi there friend")
    return fake


@pytest.fixture
def api_key():
    return {"value": "test_key"}


@pytest.fixture
def controller(sink, client, clock, api_key):
    settings = ChatSettings(model="gemini-2.5-pro")
    scheduler = StreamScheduler(interval_ms=50, words_per_chunk=2, schedule=clock.schedule)
    return SessionController(
        sink,
        client,
        read_api_key=lambda: api_key["value"],
        settings=settings,
        scheduler=scheduler,
    )
