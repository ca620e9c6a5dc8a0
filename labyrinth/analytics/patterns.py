"""Process-failure pattern detection: post-mock-test clusters and revision workflows."""

import re
from typing import Sequence

from labyrinth.notes import topic_name
from labyrinth.schemas import FailureEvent, FailureType

MOCK_TEST_PATTERN = re.compile(r"Mock Test \d+", re.IGNORECASE)
REVISION_KEYWORDS = ("revise", "review", "summarize", "practice", "recall")


def _process_failures(events: Sequence[FailureEvent]) -> list[FailureEvent]:
    return [e for e in events if e.failure_type == FailureType.PROCESS_FAILURE]


def post_mock_patterns(events: Sequence[FailureEvent]) -> list[str]:
    """Mock tests followed by two or more process failures.

    Reported when the failures span several archetypes, or when at least
    three share the same one.
    """
    by_mock: dict[str, list[FailureEvent]] = {}
    for event in _process_failures(events):
        match = MOCK_TEST_PATTERN.search(event.linked_test_ref or "")
        if match:
            by_mock.setdefault(match.group(0), []).append(event)

    insights = []
    for mock, logs in by_mock.items():
        if len(logs) < 2:
            continue
        archetypes: list[str] = []
        for log in logs:
            archetypes += [a for a in log.archetypes if a not in archetypes]
        if len(archetypes) > 1:
            insights.append(
                f"Post-{mock} Workflow: Multiple different process failure archetypes "
                f"({', '.join(archetypes)}) occurred after this mock test."
            )
        elif len(logs) >= 3:
            insights.append(
                f"Post-{mock} Workflow: High frequency ({len(logs)} logs) of process failures "
                f"occurred after this mock test."
            )
    return insights


def revision_workflow_patterns(events: Sequence[FailureEvent]) -> list[str]:
    """Revision-style tasks with three or more process failures across more than two topics."""
    by_keyword: dict[str, list[FailureEvent]] = {}
    for event in _process_failures(events):
        task = event.source_task.lower()
        keyword = next((k for k in REVISION_KEYWORDS if k in task), None)
        if keyword is not None:
            by_keyword.setdefault(keyword, []).append(event)

    insights = []
    for keyword, logs in by_keyword.items():
        if len(logs) < 3:
            continue
        topics: list[str] = []
        for log in logs:
            topics += [n for n in map(topic_name, log.topics) if n and n not in topics]
        if len(topics) > 2:
            insights.append(
                f'"{keyword}" Workflow: Frequent process failures ({len(logs)} logs) occur '
                f"across multiple topics ({', '.join(topics)})."
            )
    return insights


def process_failure_patterns(events: Sequence[FailureEvent]) -> list[str]:
    return post_mock_patterns(events) + revision_workflow_patterns(events)
