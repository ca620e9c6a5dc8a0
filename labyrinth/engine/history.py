"""History & Trend Tracker.

Derives statistics from the bounded Minotaur history (oldest -> newest)
and maintains the slaying streak: the number of days since the current
Minotaur last appeared in a completed loss log.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional, Sequence

from labyrinth.schemas import MinotaurEntry, MinotaurState

logger = logging.getLogger(__name__)

DEFAULT_RECENT_PERIOD = 5
STREAK_ACHIEVEMENT_DAYS = 21
ACHIEVEMENT_MINOTAUR_SLAYER = "Minotaur Slayer"


def archetype_frequency(history: Sequence[MinotaurEntry]) -> dict[str, int]:
    """How many times each archetype has been dominant, in first-seen order."""
    counts: dict[str, int] = {}
    for entry in history:
        counts[entry.archetype] = counts.get(entry.archetype, 0) + 1
    return counts


def most_frequent(history: Sequence[MinotaurEntry]) -> tuple[str, int]:
    """(archetype, count) of the most frequently recorded Minotaur; ties keep first seen."""
    best, best_count = "", 0
    for archetype, count in archetype_frequency(history).items():
        if count > best_count:
            best, best_count = archetype, count
    return best, best_count


def most_persistent(history: Sequence[MinotaurEntry]) -> tuple[str, int]:
    """(archetype, run length) of the longest run of identical consecutive entries.

    Ties resolve to the first maximal run. Empty history gives ("", 0).
    """
    if not history:
        return "", 0

    best, best_run = history[0].archetype, 1
    current, run = history[0].archetype, 1
    for entry in history[1:]:
        if entry.archetype == current:
            run += 1
        else:
            current, run = entry.archetype, 1
        if run > best_run:
            best, best_run = current, run
    return best, best_run


def recent_instability(history: Sequence[MinotaurEntry], period: int = DEFAULT_RECENT_PERIOD) -> int:
    """Distinct archetypes among the last ``period`` history entries."""
    if period <= 0:
        return 0
    return len({entry.archetype for entry in history[-period:]})


@dataclass
class TrendReport:
    """Summary of how the Minotaur has shifted over time."""
    total_changes: int
    frequency: dict[str, int]
    most_frequent: str
    most_frequent_count: int
    most_persistent: str
    longest_run: int
    recent_period: int
    recent_instability: int
    timeline: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Serialize for display."""
        return {
            "total_changes": self.total_changes,
            "frequency": dict(self.frequency),
            "most_frequent": self.most_frequent,
            "most_frequent_count": self.most_frequent_count,
            "most_persistent": self.most_persistent,
            "longest_run": self.longest_run,
            "recent_period": self.recent_period,
            "recent_instability": self.recent_instability,
            "timeline": list(self.timeline),
        }


def analyze_trends(history: Sequence[MinotaurEntry], period: int = DEFAULT_RECENT_PERIOD) -> TrendReport:
    """Compute every history statistic in one pass for display."""
    frequent, frequent_count = most_frequent(history)
    persistent, run = most_persistent(history)
    return TrendReport(
        total_changes=len(history),
        frequency=archetype_frequency(history),
        most_frequent=frequent,
        most_frequent_count=frequent_count,
        most_persistent=persistent,
        longest_run=run,
        recent_period=period,
        recent_instability=recent_instability(history, period),
        timeline=[f"{e.date.isoformat()}: {e.archetype}" for e in history],
    )


@dataclass
class StreakUpdate:
    """Result of applying a completed event to the slaying streak."""
    streak_days: int
    defeated: bool            # The current Minotaur struck again
    achievement: Optional[str] = None


def update_streak(
    state: MinotaurState,
    archetypes: Iterable[str],
    today: date,
    achievement_days: int = STREAK_ACHIEVEMENT_DAYS,
) -> StreakUpdate:
    """Apply a completed event's archetypes to the slaying streak.

    The streak resets to 0 only when the event carries the current Minotaur.
    Otherwise it becomes the number of days since the last defeat, or stays
    unchanged when there has been no defeat yet.
    """
    if state.current and state.current in set(archetypes):
        state.streak_days = 0
        state.last_defeat_date = today
        logger.info(f"The Minotaur ({state.current}) struck again. Streak reset.")
        return StreakUpdate(streak_days=0, defeated=True)

    achievement = None
    if state.last_defeat_date is not None:
        state.streak_days = max(0, (today - state.last_defeat_date).days)
        if state.streak_days >= achievement_days:
            achievement = ACHIEVEMENT_MINOTAUR_SLAYER
            logger.info(
                f"Achievement unlocked: {state.streak_days} days free of {state.current or 'the Minotaur'}"
            )
    return StreakUpdate(streak_days=state.streak_days, defeated=False, achievement=achievement)
