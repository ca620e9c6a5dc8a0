"""Tests for the analytics scans."""

from datetime import timedelta

import pytest

from labyrinth.analytics.correlation import check_pair, paper_type_sweep, scan_correlations
from labyrinth.analytics.patterns import post_mock_patterns, revision_workflow_patterns
from labyrinth.analytics.scans import (
    build_report,
    escape_rate,
    failure_type_distribution,
    nemesis_topics,
    recent_threads,
    thread_reuse,
)
from labyrinth.schemas import FailureType, FollowupMetadata


class TestUsageScans:
    """Tests for topic and thread statistics."""

    def test_nemesis_topics_need_three_distinct_events(self, make_event):
        events = [
            make_event(topics=["[[Polity]]", "Polity"]),
            make_event(topics=["[[Polity]]", "[[Economy]]"]),
            make_event(topics=["Polity"]),
            make_event(topics=["Economy"]),
        ]
        assert nemesis_topics(events) == {"Polity": 3}

    def test_thread_reuse_matches_trimmed_text(self, make_event):
        events = [
            make_event(principle="Always timebox MCQs"),
            make_event(principle=" Always timebox MCQs "),
            make_event(principle="always timebox mcqs"),
        ]
        assert thread_reuse(events)[0] == ("Always timebox MCQs", 2)

    def test_recent_threads_newest_first(self, make_event):
        events = [make_event(days_ago=5, principle="old"), make_event(days_ago=1, principle="new")]
        assert recent_threads(events) == ["new", "old"]

    def test_failure_type_distribution_includes_zeroes(self, make_event):
        counts = failure_type_distribution([make_event(failure_type=FailureType.SKILL_GAP)])
        assert counts == {"Knowledge Gap": 0, "Skill Gap": 1, "Process Failure": 0}


class TestEscapeRate:
    """Tests for failures later redeemed by follow-up study."""

    def test_followup_after_failure_counts(self, make_event, now):
        events = [
            make_event(days_ago=10, topics=["[[Polity]]"]),
            make_event(days_ago=10, topics=["[[Economy]]"]),
        ]
        followups = [
            FollowupMetadata(topic="[[Polity]]", understanding="🔼", created=now - timedelta(days=2)),
            FollowupMetadata(topic="Economy", understanding="Low", created=now),
        ]
        rate = escape_rate(events, followups)
        assert (rate.escaped, rate.failed) == (1, 2)
        assert rate.percentage == pytest.approx(50.0)

    def test_followup_before_failure_does_not_count(self, make_event, now):
        events = [make_event(days_ago=1, topics=["Polity"])]
        followups = [FollowupMetadata(topic="Polity", understanding="High", created=now - timedelta(days=3))]
        assert escape_rate(events, followups).escaped == 0

    def test_tag_match(self, make_event, now):
        events = [make_event(days_ago=3, topics=["[[Indian Economy]]"])]
        followups = [FollowupMetadata(tags=["#indian-economy"], understanding="High", created=now)]
        assert escape_rate(events, followups).escaped == 1

    def test_no_failures(self):
        assert escape_rate([], []).percentage == 0.0


class TestCorrelations:
    """Tests for threshold-based conditional frequencies."""

    def test_preset_pair_above_threshold(self, make_event):
        events = [make_event(["silly-mistake"], aura="#aura-low") for _ in range(3)]
        events.append(make_event(["silly-mistake"], aura="#aura-high"))
        found = scan_correlations(events)
        assert any(c.condition == "silly-mistake" and c.matched == 3 and c.support == 4 for c in found)

    def test_small_conditioning_set_is_ignored(self, make_event):
        events = [make_event(["silly-mistake"], aura="#aura-low") for _ in range(2)]
        assert not [c for c in scan_correlations(events) if c.condition == "silly-mistake"]

    def test_threshold_is_strict(self, make_event):
        events = [make_event(impact=5, emotional_state="Frustrated") for _ in range(3)]
        events += [make_event(impact=1, emotional_state="Frustrated") for _ in range(2)]
        result = check_pair(
            events, "Frustrated", lambda e: e.emotional_state == "Frustrated", "high", lambda e: e.impact >= 4
        )
        assert result is None

    def test_paper_sweep_uses_seventy_percent(self, make_event):
        events = [make_event(papers=["GS2"], failure_type=FailureType.PROCESS_FAILURE) for _ in range(3)]
        events.append(make_event(papers=["GS2"], failure_type=FailureType.SKILL_GAP))
        found = paper_type_sweep(events)
        assert [(c.condition, c.outcome) for c in found] == [("GS2", "Process Failure")]


class TestProcessPatterns:
    """Tests for process-failure workflow detection."""

    def test_post_mock_cluster(self, make_event):
        events = [
            make_event(["time-mismanagement"], failure_type=FailureType.PROCESS_FAILURE,
                       linked_test_ref="[[Mock Test 5 - GS2]]"),
            make_event(["silly-mistake"], failure_type=FailureType.PROCESS_FAILURE,
                       linked_test_ref="Mock Test 5"),
        ]
        insights = post_mock_patterns(events)
        assert len(insights) == 1
        assert insights[0].startswith("Post-Mock Test 5 Workflow")

    def test_revision_workflow(self, make_event):
        events = [
            make_event(source_task=f"Revise {t}", failure_type=FailureType.PROCESS_FAILURE, topics=[f"[[{t}]]"])
            for t in ("Polity", "Economy", "Geography")
        ]
        insights = revision_workflow_patterns(events)
        assert len(insights) == 1
        assert '"revise" Workflow' in insights[0]


def test_build_report(make_event, now):
    events = [make_event(["overthinking"], days_ago=40), make_event(["procrastination"], days_ago=1)]
    report = build_report(events, [], now, decay_factor=0.95, current_minotaur="procrastination")
    data = report.to_dict()

    assert data["total_logs"] == 2
    assert [row[0] for row in data["weighted_leaderboard"]] == ["procrastination", "overthinking"]
    assert data["current_minotaur_score"] == pytest.approx(0.95, abs=0.01)
    assert data["unique_threads"] == 1
