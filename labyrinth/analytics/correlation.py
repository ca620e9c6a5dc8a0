"""
Threshold-based correlation detection between categorical loss log fields.

For a conditioning set A and a predicate B the scan computes P(B|A) and
surfaces the pair only when it exceeds the threshold and A holds at least
``min_support`` events.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from labyrinth.schemas import FailureEvent, FailureType

PRESET_THRESHOLD = 60.0
EXPLORATORY_THRESHOLD = 70.0
DEFAULT_MIN_SUPPORT = 3
HIGH_IMPACT = 4

Predicate = Callable[[FailureEvent], bool]


@dataclass
class Correlation:
    """A surfaced conditional frequency."""
    condition: str
    outcome: str
    matched: int
    support: int
    percentage: float

    @property
    def description(self) -> str:
        return f"{self.condition} and {self.outcome}"

    @property
    def details(self) -> str:
        return (
            f"{self.matched}/{self.support} ({self.percentage:.2f}%) of '{self.condition}' "
            f"logs were '{self.outcome}'."
        )

    def to_dict(self) -> dict:
        return {
            "condition": self.condition,
            "outcome": self.outcome,
            "matched": self.matched,
            "support": self.support,
            "percentage": round(self.percentage, 2),
        }


def conditional_frequency(
    events: Sequence[FailureEvent],
    condition: Predicate,
    outcome: Predicate,
) -> tuple[int, int]:
    """(|A and B|, |A|) over ``events``."""
    conditioned = [e for e in events if condition(e)]
    return sum(1 for e in conditioned if outcome(e)), len(conditioned)


def check_pair(
    events: Sequence[FailureEvent],
    condition_name: str,
    condition: Predicate,
    outcome_name: str,
    outcome: Predicate,
    threshold: float = PRESET_THRESHOLD,
    min_support: int = DEFAULT_MIN_SUPPORT,
) -> Optional[Correlation]:
    """The correlation if P(outcome|condition) exceeds ``threshold`` percent."""
    matched, support = conditional_frequency(events, condition, outcome)
    if support == 0 or support < min_support:
        return None
    percentage = matched / support * 100
    if percentage <= threshold:
        return None
    return Correlation(condition_name, outcome_name, matched, support, percentage)


def _high_impact(event: FailureEvent) -> bool:
    return event.impact >= HIGH_IMPACT


PRESET_PAIRS: list[tuple[str, Predicate, str, Predicate]] = [
    ("silly-mistake", lambda e: "silly-mistake" in e.archetypes, "#aura-low", lambda e: e.aura == "#aura-low"),
    ("Frustrated", lambda e: e.emotional_state == "Frustrated", f"High Impact (>={HIGH_IMPACT})", _high_impact),
    (
        FailureType.PROCESS_FAILURE.value,
        lambda e: e.failure_type == FailureType.PROCESS_FAILURE,
        f"High Impact (>={HIGH_IMPACT})",
        _high_impact,
    ),
    (f"High Impact (>={HIGH_IMPACT})", _high_impact, "Frustrated", lambda e: e.emotional_state == "Frustrated"),
]


def paper_type_sweep(
    events: Sequence[FailureEvent],
    threshold: float = EXPLORATORY_THRESHOLD,
    min_support: int = DEFAULT_MIN_SUPPORT,
) -> list[Correlation]:
    """Exploratory scan of every syllabus paper against every failure type."""
    papers: list[str] = []
    for event in events:
        for paper in event.papers:
            if paper not in papers:
                papers.append(paper)

    found = []
    for paper in papers:
        for failure_type in FailureType:
            correlation = check_pair(
                events,
                paper,
                lambda e, p=paper: p in e.papers,
                failure_type.value,
                lambda e, t=failure_type: e.failure_type == t,
                threshold=threshold,
                min_support=min_support,
            )
            if correlation is not None:
                found.append(correlation)
    return found


def scan_correlations(
    events: Sequence[FailureEvent],
    min_support: int = DEFAULT_MIN_SUPPORT,
) -> list[Correlation]:
    """Preset pairs followed by the paper x failure type sweep."""
    found = []
    for condition_name, condition, outcome_name, outcome in PRESET_PAIRS:
        correlation = check_pair(
            events, condition_name, condition, outcome_name, outcome, PRESET_THRESHOLD, min_support
        )
        if correlation is not None:
            found.append(correlation)
    found.extend(paper_type_sweep(events, EXPLORATORY_THRESHOLD, min_support))
    return found
