# tests/conftest.py
# Shared fixtures: a controllable wall clock and an in-memory store.
from datetime import datetime

import pytest

from tracecore.hooks.events import KeyEvent, KeyAction, EditContext
from tracecore.storage.memory_store import MemoryStore
from tracecore.utils.notifier import RecordingNotifier
from typetrace.analytics.config import TrackerConfig
from typetrace.controller.runner import TelemetryEngine

class FakeClock:
    def __init__(self, start: datetime):
        self.now = start.timestamp()

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now

    def set(self, when: datetime) -> float:
        self.now = when.timestamp()
        return self.now

@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 10, 9, 0, 0))

@pytest.fixture
def store():
    return MemoryStore()

@pytest.fixture
def notifier():
    return RecordingNotifier()

@pytest.fixture
def cfg():
    return TrackerConfig(base_dir="stats")

@pytest.fixture
def engine(store, clock, notifier, cfg):
    eng = TelemetryEngine(store, clock=clock, notifier=notifier, config=cfg)
    eng.open()
    return eng

def press(engine, key, mods=(), column=None, line=""):
    ctx = EditContext(column=column, line=line) if column is not None else None
    return engine.handle(KeyEvent(key=key, action=KeyAction.DOWN, mods=set(mods), context=ctx))

def type_text(engine, text):
    for ch in text:
        press(engine, ch)
