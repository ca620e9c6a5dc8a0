"""Tests for the LabyrinthEngine orchestration pipeline."""

import random
from datetime import date, timedelta
from unittest.mock import AsyncMock

import pytest

from labyrinth.engine.history import ACHIEVEMENT_MINOTAUR_SLAYER
from labyrinth.engine.remediation import KINTSUGI_TAG, UNSTABLE_TAG
from labyrinth.engine.service import LabyrinthEngine, parse_loss_record
from labyrinth.engine.signals import LabyrinthListener
from labyrinth.errors import LabyrinthError, LossLogValidationError, RecordParseError, RecordStoreError
from labyrinth.schemas import MinotaurEntry, Origin, TaskItem
from labyrinth.store.markdown import MarkdownRecordStore

LOSS_FOLDER = "40 Reflections/Labyrinth"


def _log(**overrides):
    fields = {
        "source_task": "Mock Test 3 - GS2",
        "archetypes": ["procrastination"],
        "principle": "Start before you feel ready",
    }
    fields.update(overrides)
    return fields


async def _seed(store, make_event, name, **kwargs):
    """Write a loss log straight into the store, bypassing the pipeline."""
    return await store.create(f"{LOSS_FOLDER}/{name}.md", make_event(**kwargs).to_metadata(), "")


class TestCreateLossLog:
    """Tests for the completed loss log pipeline."""

    @pytest.mark.asyncio
    async def test_record_written_and_state_updated(self, engine, store, save):
        outcome = await engine.log_failure(_log())

        assert await store.exists(outcome.path)
        metadata = await store.read_metadata(outcome.path)
        assert metadata["lossId"] == "loss_20261018_1000"
        assert metadata["failureArchetypes"] == ["procrastination"]
        assert "#failed-on-20261018" in metadata["failureTags"]

        assert engine.xp == 10
        assert engine.state.lifetime_events == 1
        assert engine.current_minotaur == "procrastination"
        assert len(outcome.minotaur_change.drills) == 2
        assert len(engine.state.tasks) == 2
        save.assert_awaited()

    @pytest.mark.asyncio
    async def test_validation_failure_writes_nothing(self, engine, store, save):
        with pytest.raises(LossLogValidationError):
            await engine.log_failure(_log(principle=""))

        assert await store.list_records("") == []
        assert engine.xp == 0
        save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_store_failure_aborts_without_saving(self, engine, store, save):
        store.create = AsyncMock(side_effect=RecordStoreError("disk full"))

        with pytest.raises(RecordStoreError):
            await engine.log_failure(_log())

        assert engine.xp == 0
        assert engine.current_minotaur == ""
        save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_same_minute_logs_get_distinct_paths(self, engine):
        first = await engine.log_failure(_log())
        second = await engine.log_failure(_log())
        assert first.path != second.path

    @pytest.mark.asyncio
    async def test_listener_hooks_are_awaited(self, store, state, config, clock):
        listener = AsyncMock(spec=LabyrinthListener)
        engine = LabyrinthEngine(store, state, config, listener=listener, clock=clock, rng=random.Random(1))

        await engine.log_failure(_log())

        listener.on_event_logged.assert_awaited_once()
        listener.on_dominant_archetype_changed.assert_awaited_once()
        listener.on_xp_changed.assert_awaited()


class TestMinotaurRecalculation:
    """Tests for recomputing the dominant archetype from stored logs."""

    @pytest.mark.asyncio
    async def test_recalculation_is_idempotent(self, engine, store, make_event):
        await _seed(store, make_event, "a", archetypes=["overthinking"], days_ago=2)

        first = await engine.recalculate_minotaur()
        tasks = len(engine.state.tasks)
        second = await engine.recalculate_minotaur()

        assert first.current == "overthinking"
        assert second is None
        assert len(engine.state.tasks) == tasks
        assert engine.state.minotaur.history == []

    @pytest.mark.asyncio
    async def test_change_pushes_history(self, engine, store, make_event):
        await _seed(store, make_event, "a", archetypes=["overthinking"], days_ago=3)
        await engine.recalculate_minotaur()
        await _seed(store, make_event, "b", archetypes=["distraction"], days_ago=0)
        await _seed(store, make_event, "c", archetypes=["distraction"], days_ago=0)

        change = await engine.recalculate_minotaur()

        assert change.previous == "overthinking"
        assert engine.current_minotaur == "distraction"
        assert [e.archetype for e in engine.state.minotaur.history] == ["overthinking"]

    @pytest.mark.asyncio
    async def test_malformed_records_are_skipped(self, engine, store, make_event):
        await store.create(f"{LOSS_FOLDER}/broken.md", {"lossId": "x", "timestamp": "not a date"}, "")
        await store.create(f"{LOSS_FOLDER}/notes.md", {"title": "scratch"}, "")
        await _seed(store, make_event, "ok", archetypes=["overthinking"], days_ago=1)

        events = await engine.load_events()

        assert [e.archetypes for e in events] == [["overthinking"]]

    def test_parse_rejects_non_loss_records(self):
        with pytest.raises(RecordParseError):
            parse_loss_record("x.md", {"title": "scratch"})


class TestDeferredLogs:
    """Tests for the deferred capture and completion lifecycle."""

    @pytest.mark.asyncio
    async def test_defer_then_complete(self, engine, store):
        pending = await engine.defer_loss_log({"source_task": "Revise Polity", "original_task_id": "task-42"})
        await engine.defer_loss_log({"source_task": "Mock Test 5"})
        assert len(engine.get_pending_logs()) == 2

        outcome = await engine.complete_pending_log(
            pending.pending_id,
            {"archetypes": ["time-mismanagement"], "principle": "Timebox every revision block"},
        )

        assert len(engine.get_pending_logs()) == 1
        assert outcome.event.provenance.origin == Origin.DEFERRED
        metadata = await store.read_metadata(outcome.path)
        assert metadata["sourceTask"] == "Revise Polity"
        assert metadata["provenance"] == {"origin": "deferred", "sourceTaskId": "task-42"}

    @pytest.mark.asyncio
    async def test_pending_hints_prefill_completion(self, engine):
        pending = await engine.defer_loss_log(
            {"source_task": "Revise Polity", "initial_archetypes": ["faded-knowledge"], "initial_aura": "#aura-low"}
        )
        outcome = await engine.complete_pending_log(pending.pending_id, {"principle": "Revise within a week"})
        assert outcome.event.archetypes == ["faded-knowledge"]
        assert outcome.event.aura == "#aura-low"

    @pytest.mark.asyncio
    async def test_invalid_completion_keeps_item_queued(self, engine):
        pending = await engine.defer_loss_log({"source_task": "Revise Polity"})

        with pytest.raises(LossLogValidationError):
            await engine.complete_pending_log(pending.pending_id, {"archetypes": ["overthinking"]})

        assert [p.pending_id for p in engine.get_pending_logs()] == [pending.pending_id]

    @pytest.mark.asyncio
    async def test_unknown_pending_id(self, engine):
        with pytest.raises(LabyrinthError):
            await engine.complete_pending_log("missing", {})
        assert await engine.discard_pending_log("missing") is None

    @pytest.mark.asyncio
    async def test_completion_resets_deferral_count(self, engine):
        engine.state.deferral_counts["task-42"] = 2
        pending = await engine.defer_loss_log({"source_task": "Revise Polity", "original_task_id": "task-42"})
        await engine.complete_pending_log(
            pending.pending_id, {"archetypes": ["procrastination"], "principle": "Do the first five minutes"}
        )
        assert engine.state.deferral_counts["task-42"] == 0

    @pytest.mark.asyncio
    async def test_discard_resets_deferral_count(self, engine):
        engine.state.deferral_counts["task-42"] = 3
        pending = await engine.defer_loss_log({"source_task": "Revise Polity", "original_task_id": "task-42"})

        removed = await engine.discard_pending_log(pending.pending_id)

        assert removed.pending_id == pending.pending_id
        assert engine.get_pending_logs() == []
        assert engine.state.deferral_counts["task-42"] == 0

    @pytest.mark.asyncio
    async def test_task_deferrals_prompt_after_threshold(self, engine):
        assert await engine.record_task_deferral("task-7") is False
        assert await engine.record_task_deferral("task-7") is True


class TestEnshrinement:
    """Tests for moving a thrice-learned thread into the codex."""

    @pytest.mark.asyncio
    async def test_third_identical_thread_enshrined_once(self, engine, store, config, clock):
        outcomes = []
        for _ in range(4):
            outcomes.append(await engine.log_failure(_log(principle=" Always timebox MCQs ")))
            clock.advance(minutes=5)

        assert [o.enshrined for o in outcomes] == [False, False, True, False]
        codex = await store.read_body(config.codex_path)
        assert codex.count("Always timebox MCQs") == 1
        assert (await store.read_metadata(outcomes[2].path))["enshrined"] is True

    @pytest.mark.asyncio
    async def test_manual_enshrine(self, engine, store, config):
        outcome = await engine.log_failure(_log())
        assert await engine.enshrine_thread(outcome.path) is True
        assert await engine.enshrine_thread(outcome.path) is False
        assert "Start before you feel ready" in await store.read_body(config.codex_path)

    @pytest.mark.asyncio
    async def test_codex_failure_still_consumes_pending_item(self, engine, store, save, clock):
        for _ in range(2):
            await engine.log_failure(_log(principle="Always timebox MCQs"))
            clock.advance(minutes=5)
        pending = await engine.defer_loss_log({"source_task": "Mock Test 4"})
        store.append = AsyncMock(side_effect=RecordStoreError("codex locked"))
        save.reset_mock()

        outcome = await engine.complete_pending_log(
            pending.pending_id, {"archetypes": ["silly-mistake"], "principle": "Always timebox MCQs"}
        )

        assert outcome.enshrined is False
        assert any("enshrine" in notice for notice in outcome.notices)
        assert engine.get_pending_logs() == []
        assert engine.xp == 30
        assert len(await engine.load_loss_records()) == 3
        save.assert_awaited()
        with pytest.raises(LabyrinthError):
            await engine.complete_pending_log(pending.pending_id, {"principle": "Always timebox MCQs"})
        assert engine.xp == 30

    @pytest.mark.asyncio
    async def test_thread_with_dashes_is_scanned_from_markdown(self, tmp_path, state, config, save, clock):
        engine = LabyrinthEngine(
            store=MarkdownRecordStore(tmp_path), state=state, config=config, save=save, clock=clock
        )

        await engine.log_failure(_log(archetypes=["silly-mistake"], principle="Read twice --- then mark"))

        events = await engine.load_events()
        assert [e.thread for e in events] == ["Read twice --- then mark"]
        assert engine.current_minotaur == "silly-mistake"


class TestRemediation:
    """Tests for XP, streak, bounty, VOI and topic consequences."""

    @pytest.mark.asyncio
    async def test_streak_resets_when_minotaur_strikes(self, engine, clock):
        engine.state.minotaur.current = "procrastination"
        engine.state.minotaur.streak_days = 5
        engine.state.minotaur.last_defeat_date = clock().date() - timedelta(days=5)

        outcome = await engine.log_failure(_log())

        assert outcome.streak.defeated is True
        assert engine.streak_days == 0

    @pytest.mark.asyncio
    async def test_streak_achievement(self, store, state, config, clock, make_event):
        listener = AsyncMock(spec=LabyrinthListener)
        engine = LabyrinthEngine(store, state, config, listener=listener, clock=clock)
        await _seed(store, make_event, "a", archetypes=["procrastination"], days_ago=1)
        await _seed(store, make_event, "b", archetypes=["procrastination"], days_ago=1)
        state.minotaur.current = "procrastination"
        state.minotaur.last_defeat_date = clock().date() - timedelta(days=21)

        outcome = await engine.log_failure(_log(archetypes=["overthinking"]))

        assert outcome.streak.achievement == ACHIEVEMENT_MINOTAUR_SLAYER
        listener.on_achievement_unlocked.assert_awaited_once_with(ACHIEVEMENT_MINOTAUR_SLAYER)

    @pytest.mark.asyncio
    async def test_bounty_completion_awards_reward(self, engine):
        await engine.start_bounty("silly-mistake", target=1, reward_xp=50)

        outcome = await engine.log_failure(_log(archetypes=["silly-mistake"]))

        assert outcome.bounty.just_completed is True
        assert engine.xp == 60
        assert outcome.xp.gained == 60

    @pytest.mark.asyncio
    async def test_voi_tasks_for_source_deficit(self, engine):
        outcome = await engine.log_failure(_log(archetypes=["source-deficit"], topics=["[[Polity]]"]))
        assert len(outcome.tasks_created) == 1
        assert "VOI Review" in outcome.tasks_created[0].text

    @pytest.mark.asyncio
    async def test_topic_marked_unstable_and_garden_decays(self, engine, store):
        await store.create("Syllabus/Polity.md", {"gardenStatus": "🌳 Fresh", "tags": ["gs2"]}, "")

        outcome = await engine.log_failure(_log(topics=["[[Polity]]"], failure_type="Knowledge Gap"))

        metadata = await store.read_metadata("Syllabus/Polity.md")
        assert UNSTABLE_TAG in metadata["tags"]
        assert metadata["gardenStatus"] == "🍂 Wilted"
        assert outcome.topics_marked == ["Syllabus/Polity.md"]

    @pytest.mark.asyncio
    async def test_process_failure_leaves_topics_alone(self, engine, store):
        await store.create("Syllabus/Polity.md", {"gardenStatus": "🌳 Fresh"}, "")

        await engine.log_failure(_log(topics=["[[Polity]]"], failure_type="Process Failure"))

        assert await store.read_metadata("Syllabus/Polity.md") == {"gardenStatus": "🌳 Fresh"}

    @pytest.mark.asyncio
    async def test_faded_ink_tag_for_decaying_topic(self, engine, store):
        await store.create("Syllabus/Economy.md", {"decay_risk": 4}, "")
        outcome = await engine.log_failure(_log(topics=["Economy"]))
        assert "#failure/faded-ink" in await store.read_body(outcome.path)


class TestSourceTagging:
    """Tests for marking the task or note a failure came from."""

    @pytest.mark.asyncio
    async def test_task_item_gets_failure_tag(self, engine):
        engine.state.tasks.append(TaskItem(id="task-1", text="Revise Polity"))

        await engine.log_failure(_log(provenance={"origin": "quick-log", "source_task_id": "task-1"}))

        assert engine.state.tasks[0].text == "Revise Polity #failed-on-20261018"

    @pytest.mark.asyncio
    async def test_source_note_gets_kintsugi_status(self, engine, store):
        await store.create("Tasks/Revise Polity.md", {}, "")

        await engine.log_failure(_log(provenance={"source_task_id": "Tasks/Revise Polity.md"}))

        metadata = await store.read_metadata("Tasks/Revise Polity.md")
        assert metadata["labyrinthFailures"] == ["20261018"]
        assert metadata["labyrinthStatus"] == [KINTSUGI_TAG]

    @pytest.mark.asyncio
    async def test_blocked_task_tags_linked_note(self, engine, store):
        await store.create("Projects/Essay.md", {}, "")

        outcome = await engine.log_failure(_log(source_task="Draft [[Essay]] #blocked"))

        assert "#failure/dependency-blocked" in await store.read_body(outcome.path)
        assert (await store.read_metadata("Projects/Essay.md"))["tags"] == ["failure/dependency-blocked"]


class TestRecordActions:
    """Tests for risk resolution, guardians, intents and archiving."""

    @pytest.mark.asyncio
    async def test_avoided_risk_awards_xp(self, engine, store):
        outcome = await engine.log_failure(_log(provenance={"origin": "proactive"}))
        assert "#loss/future-risk" in await store.read_body(outcome.path)

        change = await engine.resolve_risk(outcome.path, manifested=False)

        assert change.gained == 20
        assert engine.xp == 30
        metadata = await store.read_metadata(outcome.path)
        assert metadata["resolved"] is True
        assert metadata["outcome"] == "Avoided"
        with pytest.raises(LabyrinthError):
            await engine.resolve_risk(outcome.path, manifested=False)

    @pytest.mark.asyncio
    async def test_manifested_risk_awards_nothing(self, engine):
        outcome = await engine.log_failure(_log(provenance={"origin": "proactive"}))
        assert await engine.resolve_risk(outcome.path, manifested=True) is None
        assert engine.xp == 10

    @pytest.mark.asyncio
    async def test_only_proactive_records_resolve(self, engine):
        outcome = await engine.log_failure(_log())
        with pytest.raises(LabyrinthError):
            await engine.resolve_risk(outcome.path, manifested=False)

    @pytest.mark.asyncio
    async def test_guardian_task(self, engine, store):
        outcome = await engine.log_failure(_log())
        task = await engine.create_guardian_task(outcome.path)
        assert '"Start before you feel ready"' in task.text
        assert task in engine.state.tasks

        await store.create("Notes/empty.md", {}, "")
        with pytest.raises(LossLogValidationError):
            await engine.create_guardian_task("Notes/empty.md")

    @pytest.mark.asyncio
    async def test_daily_intent(self, engine, store, make_event):
        assert await engine.daily_intent() is None
        await _seed(store, make_event, "short", principle="Be calm")
        await _seed(store, make_event, "long", principle="Read every option twice")
        assert await engine.daily_intent() == "Read every option twice"

    @pytest.mark.asyncio
    async def test_thread_obsolescence(self, engine, store, make_event):
        await store.create("Syllabus/Polity.md", {"MyConfidence": 4}, "")
        await store.create("Syllabus/Economy.md", {"MyConfidence": 2}, "")
        old = await _seed(store, make_event, "old", days_ago=40, topics=["[[Polity]]"], principle="Use the bare act")
        await _seed(store, make_event, "weak", days_ago=40, topics=["[[Economy]]"], principle="Draw the graph")
        await _seed(store, make_event, "fresh", days_ago=2, topics=["[[Polity]]"], principle="Quote articles")

        archived = await engine.check_thread_obsolescence()

        assert [a.thread for a in archived] == ["Use the bare act"]
        assert (await store.read_metadata(old))["labyrinthStatus"] == ["archived"]
        assert await engine.check_thread_obsolescence() == []
        assert len(engine.state.archived_threads) == 1


class TestResets:
    """Tests for bounty lifecycle and the weekly reset."""

    @pytest.mark.asyncio
    async def test_weekly_reset_keeps_xp(self, engine):
        await engine.log_failure(_log())
        await engine.defer_loss_log({"source_task": "Revise Polity"})
        await engine.record_task_deferral("task-1")
        engine.state.minotaur.history.append(MinotaurEntry(date=date(2026, 10, 1), archetype="overthinking"))

        await engine.weekly_reset()

        assert engine.get_pending_logs() == []
        assert engine.state.deferral_counts == {}
        assert engine.state.minotaur.history == []
        assert engine.xp == 10

    @pytest.mark.asyncio
    async def test_abandon_bounty(self, engine):
        await engine.start_bounty("overthinking")
        assert engine.bounties.active.target == 3
        dropped = await engine.abandon_bounty()
        assert dropped.archetype == "overthinking"
        assert engine.bounties.active is None

