"""Pytest configuration and fixtures."""

import random
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from labyrinth.config import LabyrinthConfig
from labyrinth.engine.service import LabyrinthEngine
from labyrinth.schemas import FailureEvent, LabyrinthState
from labyrinth.store.memory import InMemoryRecordStore

NOW = datetime(2026, 10, 18, 10, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that tests can move forward."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, days: float = 0, minutes: float = 0) -> datetime:
        self.now = self.now + timedelta(days=days, minutes=minutes)
        return self.now


def build_event(
    archetypes=("procrastination",),
    days_ago: float = 0,
    now: datetime = NOW,
    **overrides,
) -> FailureEvent:
    """Build a completed event ``days_ago`` days before ``now``."""
    timestamp = now - timedelta(days=days_ago)
    data = {
        "id": f"loss_{timestamp:%Y%m%d_%H%M}",
        "source_task": "Mock Test 3 - GS2",
        "archetypes": list(archetypes),
        "principle": "Read the question twice",
        "timestamp": timestamp,
    }
    data.update(overrides)
    return FailureEvent(**data)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def state():
    return LabyrinthState()


@pytest.fixture
def config():
    return LabyrinthConfig()


@pytest.fixture
def save():
    return AsyncMock()


@pytest.fixture
def engine(store, state, config, save, clock):
    return LabyrinthEngine(
        store=store,
        state=state,
        config=config,
        save=save,
        clock=clock,
        rng=random.Random(7),
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_event():
    return build_event
