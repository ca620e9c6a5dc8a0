"""
Analytics Scans over stored loss logs.

All functions here are pure and read-only: the engine loads events and
follow-up records (skipping malformed ones) and hands them in.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence

from labyrinth.analytics.correlation import DEFAULT_MIN_SUPPORT, Correlation, scan_correlations
from labyrinth.analytics.patterns import process_failure_patterns
from labyrinth.engine.scoring import leaderboard, raw_counts, score_archetypes
from labyrinth.notes import topic_name
from labyrinth.schemas import FailureEvent, FailureType, FollowupMetadata

logger = logging.getLogger(__name__)

NEMESIS_MIN_EVENTS = 3
TOP_N = 5


def nemesis_topics(events: Sequence[FailureEvent], min_events: int = NEMESIS_MIN_EVENTS) -> dict[str, int]:
    """Topics implicated in at least ``min_events`` distinct events, most frequent first."""
    counts: dict[str, int] = {}
    for event in events:
        for name in {topic_name(t) for t in event.topics if topic_name(t)}:
            counts[name] = counts.get(name, 0) + 1
    nemeses = {name: count for name, count in counts.items() if count >= min_events}
    return dict(sorted(nemeses.items(), key=lambda item: -item[1]))


def thread_reuse(events: Sequence[FailureEvent], size: int = TOP_N) -> list[tuple[str, int]]:
    """Most repeated principles, compared exactly after trimming."""
    counts: dict[str, int] = {}
    for event in events:
        if event.thread:
            counts[event.thread] = counts.get(event.thread, 0) + 1
    return sorted(counts.items(), key=lambda item: -item[1])[:size]


def _followup_matches(followup: FollowupMetadata, topic: str) -> bool:
    wanted = topic.lower()
    if topic_name(followup.topic).lower() == wanted:
        return True
    slug = wanted.replace(" ", "-")
    return any(tag.lstrip("#").lower() in (wanted, slug) for tag in followup.tags)


@dataclass
class EscapeRate:
    escaped: int
    failed: int

    @property
    def percentage(self) -> float:
        return self.escaped / self.failed * 100 if self.failed else 0.0

    def to_dict(self) -> dict:
        return {"escaped": self.escaped, "failed": self.failed, "percentage": round(self.percentage, 2)}


def escape_rate(events: Sequence[FailureEvent], followups: Sequence[FollowupMetadata]) -> EscapeRate:
    """Share of failed topics later redeemed by a high-understanding follow-up.

    A follow-up counts only if it was created after the topic's first failure.
    """
    first_failure: dict[str, datetime] = {}
    for event in events:
        for topic in event.topics:
            name = topic_name(topic)
            if name and (name not in first_failure or event.timestamp < first_failure[name]):
                first_failure[name] = event.timestamp

    redeemers = [f for f in followups if f.is_high_understanding and f.created is not None]
    escaped = sum(
        1
        for name, failed_at in first_failure.items()
        if any(f.created > failed_at and _followup_matches(f, name) for f in redeemers)
    )
    return EscapeRate(escaped=escaped, failed=len(first_failure))


def failure_type_distribution(events: Sequence[FailureEvent]) -> dict[str, int]:
    counts = {t.value: 0 for t in FailureType}
    for event in events:
        counts[event.failure_type.value] += 1
    return counts


def paper_breakdown(events: Sequence[FailureEvent]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for event in events:
        for paper in event.papers:
            counts[paper] = counts.get(paper, 0) + 1
    return counts


def recent_threads(events: Sequence[FailureEvent], size: int = TOP_N) -> list[str]:
    """Latest principles, newest first."""
    ordered = sorted(events, key=lambda e: e.timestamp, reverse=True)
    return [e.thread for e in ordered if e.thread][:size]


@dataclass
class AnalyticsReport:
    """Every scan result, ready for display."""
    total_logs: int
    weighted_leaderboard: list[tuple[str, float]]
    raw_leaderboard: list[tuple[str, int]]
    current_minotaur: str = ""
    current_minotaur_score: Optional[float] = None
    nemesis_topics: dict[str, int] = field(default_factory=dict)
    thread_reuse: list[tuple[str, int]] = field(default_factory=list)
    escape_rate: EscapeRate = field(default_factory=lambda: EscapeRate(0, 0))
    correlations: list[Correlation] = field(default_factory=list)
    failure_types: dict[str, int] = field(default_factory=dict)
    papers: dict[str, int] = field(default_factory=dict)
    unique_threads: int = 0
    recent_threads: list[str] = field(default_factory=list)
    process_patterns: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total_logs": self.total_logs,
            "weighted_leaderboard": [[a, round(s, 2)] for a, s in self.weighted_leaderboard],
            "raw_leaderboard": [list(item) for item in self.raw_leaderboard],
            "current_minotaur": self.current_minotaur,
            "current_minotaur_score": (
                round(self.current_minotaur_score, 2) if self.current_minotaur_score is not None else None
            ),
            "nemesis_topics": dict(self.nemesis_topics),
            "thread_reuse": [list(item) for item in self.thread_reuse],
            "escape_rate": self.escape_rate.to_dict(),
            "correlations": [c.to_dict() for c in self.correlations],
            "failure_types": dict(self.failure_types),
            "papers": dict(self.papers),
            "unique_threads": self.unique_threads,
            "recent_threads": list(self.recent_threads),
            "process_patterns": list(self.process_patterns),
        }


def build_report(
    events: Sequence[FailureEvent],
    followups: Sequence[FollowupMetadata],
    now: datetime,
    decay_factor: float,
    current_minotaur: str = "",
    min_support: int = DEFAULT_MIN_SUPPORT,
) -> AnalyticsReport:
    """Run every scan. The weighted leaderboard ignores the lookback window."""
    scores = score_archetypes(events, now, decay_factor, window_days=None)
    counts = raw_counts(events)
    logger.debug(f"Analyzing {len(events)} loss logs and {len(followups)} follow-ups")
    return AnalyticsReport(
        total_logs=len(events),
        weighted_leaderboard=leaderboard(scores, TOP_N),
        raw_leaderboard=sorted(counts.items(), key=lambda item: -item[1])[:TOP_N],
        current_minotaur=current_minotaur,
        current_minotaur_score=scores.get(current_minotaur) if current_minotaur else None,
        nemesis_topics=nemesis_topics(events),
        thread_reuse=thread_reuse(events),
        escape_rate=escape_rate(events, followups),
        correlations=scan_correlations(events, min_support),
        failure_types=failure_type_distribution(events),
        papers=paper_breakdown(events),
        unique_threads=len({e.thread for e in events if e.thread}),
        recent_threads=recent_threads(events),
        process_patterns=process_failure_patterns(events),
    )
