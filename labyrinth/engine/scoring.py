"""Scoring Engine: decay-weighted archetype scores and the dominant archetype.

Each event in the lookback window contributes

    weight = decay_factor ** floor(days_since(event.timestamp))

to every archetype it carries. The archetype with the strictly greatest
score is the Minotaur. Ties keep the archetype discovered first, where
discovery order is the order events are supplied in (the store enumerates
records sorted by path, which for loss logs is chronological).
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Sequence

import numpy as np

from labyrinth.schemas import FailureEvent, MinotaurEntry, MinotaurState

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86_400.0
DEFAULT_LOOKBACK_DAYS = 30
DEFAULT_HISTORY_LIMIT = 30
LEADERBOARD_SIZE = 5


def days_since(timestamp: datetime, now: datetime) -> float:
    """Fractional days elapsed; future timestamps count as zero."""
    return max(0.0, (now - timestamp).total_seconds() / SECONDS_PER_DAY)


def decay_weight(timestamp: datetime, now: datetime, decay_factor: float) -> float:
    """Weight of a single event: ``decay_factor ** floor(days_since)``."""
    return decay_factor ** math.floor(days_since(timestamp, now))


def events_in_window(
    events: Iterable[FailureEvent],
    now: datetime,
    window_days: int = DEFAULT_LOOKBACK_DAYS,
) -> list[FailureEvent]:
    """Events whose timestamp falls within the last ``window_days`` days."""
    cutoff = now - timedelta(days=window_days)
    return [e for e in events if e.timestamp >= cutoff]


def score_archetypes(
    events: Sequence[FailureEvent],
    now: datetime,
    decay_factor: float,
    window_days: Optional[int] = DEFAULT_LOOKBACK_DAYS,
) -> dict[str, float]:
    """Decayed score per archetype, in first-discovered order.

    Args:
        events: Events in a fixed order (discovery order drives tie-breaks)
        now: Evaluation time
        decay_factor: Per-day multiplicative weight; 1.0 gives raw counts
        window_days: Lookback window; None scores every event supplied

    Returns:
        Mapping archetype -> score, insertion-ordered by first discovery
    """
    if window_days is not None:
        events = events_in_window(events, now, window_days)
    if not events:
        return {}

    elapsed = np.array([days_since(e.timestamp, now) for e in events], dtype=np.float64)
    weights = np.power(decay_factor, np.floor(elapsed))

    scores: dict[str, float] = {}
    for event, weight in zip(events, weights):
        for archetype in event.archetypes:
            scores[archetype] = scores.get(archetype, 0.0) + float(weight)
    return scores


def raw_counts(events: Iterable[FailureEvent]) -> dict[str, int]:
    """Occurrences per archetype, in first-discovered order."""
    counts: dict[str, int] = {}
    for event in events:
        for archetype in event.archetypes:
            counts[archetype] = counts.get(archetype, 0) + 1
    return counts


def select_dominant(scores: dict[str, float]) -> str:
    """Archetype with the strictly greatest score, or "" when there is none."""
    dominant = ""
    best = 0.0
    for archetype, score in scores.items():
        if score > best:
            best = score
            dominant = archetype
    return dominant


def leaderboard(scores: dict[str, float], size: int = LEADERBOARD_SIZE) -> list[tuple[str, float]]:
    """Top ``size`` archetypes by score; ties keep discovery order."""
    return sorted(scores.items(), key=lambda item: -item[1])[:size]


@dataclass
class MinotaurChange:
    """Outcome of a recomputation that changed the dominant archetype."""
    previous: str
    current: str
    scores: dict[str, float] = field(default_factory=dict)
    drills: list[str] = field(default_factory=list)


def apply_dominant(
    state: MinotaurState,
    dominant: str,
    today: date,
    history_limit: int = DEFAULT_HISTORY_LIMIT,
) -> Optional[MinotaurChange]:
    """Store a newly computed dominant archetype.

    No-op (returns None) when it equals the stored one, which keeps
    recomputation idempotent. Otherwise the dethroned archetype is pushed
    onto history (an empty previous value is not recorded) and history is
    trimmed to the most recent ``history_limit`` entries.
    """
    previous = state.current
    if dominant == previous:
        return None

    if previous:
        state.history.append(MinotaurEntry(date=today, archetype=previous))
        if len(state.history) > history_limit:
            state.history = state.history[-history_limit:]
    state.current = dominant
    logger.info(f"Minotaur changed: {previous or '(none)'} -> {dominant or '(none)'}")
    return MinotaurChange(previous=previous, current=dominant)
