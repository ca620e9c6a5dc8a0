"""
Labyrinth Engine: the failure-pattern aggregation and remediation loop.

The engine owns a LabyrinthState aggregate and a RecordStore. Every
mutating operation runs to completion and then awaits the injected
``save`` callable; the host is responsible for serializing calls.

Completed loss log pipeline:
1. validate (before any I/O)
2. write the record to the store
3. tag the originating task / note, reset its deferral counter
4. recompute the Minotaur (history + Theseus drills on change)
5. XP, slaying streak, bounty progress
6. VOI review tasks, topic consequences, enshrinement check
7. save the aggregate

The record write always happens before derived side effects, so a crash
mid-pipeline leaves the record durable and its consequences re-derivable.
"""

import logging
import random
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Mapping, Optional

from pydantic import ValidationError

from labyrinth.analytics.scans import AnalyticsReport, build_report
from labyrinth.config import LabyrinthConfig
from labyrinth.engine.builder import build_pending, prepare_event, validate_completed
from labyrinth.engine.drills import select_drills
from labyrinth.engine.history import TrendReport, analyze_trends, update_streak
from labyrinth.engine.queue import DeferralCounter, PendingQueue
from labyrinth.engine.remediation import (
    ARCHIVED_STATUS,
    KINTSUGI_TAG,
    BountyBoard,
    LevelInfo,
    XPChange,
    add_list_item,
    award_xp,
    level_for_xp,
    mark_unstable,
    should_propagate_to_topics,
    step_down_garden,
    voi_task_texts,
)
from labyrinth.engine.scoring import MinotaurChange, apply_dominant, score_archetypes, select_dominant
from labyrinth.engine.signals import LabyrinthListener, LogOutcome
from labyrinth.errors import LabyrinthError, LossLogValidationError, RecordParseError, RecordStoreError
from labyrinth.notes import (
    BLOCKED_MARKER,
    DEPENDENCY_BLOCKED_TAG,
    FADED_INK_TAG,
    FUTURE_RISK_TAG,
    codex_entry,
    failure_tag,
    link_target,
    note_path,
    render_body,
    topic_name,
)
from labyrinth.schemas import (
    ArchivedThread,
    Bounty,
    FailureEvent,
    FollowupMetadata,
    LabyrinthState,
    Origin,
    PendingEvent,
    RecordMetadata,
    TaskItem,
    TopicMetadata,
    utc_now,
)
from labyrinth.store.base import RecordStore, record_basename

logger = logging.getLogger(__name__)

SaveCallback = Callable[[LabyrinthState], Awaitable[None]]

FADED_INK_DECAY_RISK = 3
MASTERED_CONFIDENCE = 4
OBSOLESCENCE_DAYS = 30
DAILY_INTENT_MIN_LENGTH = 10
CODEX_HEADER = "# Codex of Threads\n\nPrinciples learned three times over.\n"


async def _no_save(state: LabyrinthState) -> None:
    return None


def parse_loss_record(path: str, metadata: Mapping[str, Any]) -> FailureEvent:
    """Validate a record's frontmatter and convert it to a FailureEvent.

    Raises:
        RecordParseError: Not a loss log, or fields of the wrong type
    """
    if "lossId" not in metadata and "failureArchetypes" not in metadata:
        raise RecordParseError(path, "not a loss log")
    try:
        return RecordMetadata.model_validate(dict(metadata)).to_event()
    except ValidationError as e:
        raise RecordParseError(path, str(e.errors()[0].get("msg", e))) from e


def _looks_like_path(identifier: str) -> bool:
    return "/" in identifier or identifier.endswith(".md")


class LabyrinthEngine:
    """
    Process-wide engine instance.

    Args:
        store: Document store holding loss logs, topics, follow-ups and the codex
        state: Aggregate loaded by the host at startup (fresh state if None)
        config: Engine options
        save: Awaitable persistence callback, called after every mutation
        listener: Optional typed notification hooks
        clock: Source of "now" (injectable for tests)
        rng: Random source for drill sampling and daily intents
    """

    def __init__(
        self,
        store: RecordStore,
        state: Optional[LabyrinthState] = None,
        config: Optional[LabyrinthConfig] = None,
        save: Optional[SaveCallback] = None,
        listener: Optional[LabyrinthListener] = None,
        clock: Callable[[], datetime] = utc_now,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.state = state if state is not None else LabyrinthState()
        self.config = config or LabyrinthConfig()
        self._save_callback = save or _no_save
        self.listener = listener or LabyrinthListener()
        self.clock = clock
        self.rng = rng or random.Random()

        self.queue = PendingQueue(self.state)
        self.deferrals = DeferralCounter(self.state, threshold=self.config.deferral_threshold)
        self.bounties = BountyBoard(self.state)

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    @property
    def current_minotaur(self) -> str:
        return self.state.minotaur.current

    @property
    def xp(self) -> int:
        return self.state.xp

    @property
    def level(self) -> LevelInfo:
        return level_for_xp(self.state.xp)

    @property
    def streak_days(self) -> int:
        return self.state.minotaur.streak_days

    def trends(self) -> TrendReport:
        """Trend statistics over the Minotaur history."""
        return analyze_trends(self.state.minotaur.history)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def save(self) -> None:
        await self._save_callback(self.state)

    async def _notify(self, outcome: Optional[LogOutcome], message: str) -> None:
        if outcome is not None:
            outcome.notices.append(message)
        await self.listener.on_notice(message)

    def _add_task(self, text: str) -> TaskItem:
        task = TaskItem(text=text, created_at=self.clock())
        self.state.tasks.append(task)
        return task

    async def load_loss_records(self) -> list[tuple[str, FailureEvent]]:
        """Every parseable loss log as (path, event), in store order.

        Unreadable or malformed records are logged and skipped.
        """
        records: list[tuple[str, FailureEvent]] = []
        for path in await self.store.list_records(self.config.loss_log_folder):
            try:
                metadata = await self.store.read_metadata(path)
                records.append((path, parse_loss_record(path, metadata)))
            except (RecordStoreError, RecordParseError) as e:
                logger.warning(f"Skipping record {path}: {e}")
        return records

    async def load_events(self) -> list[FailureEvent]:
        return [event for _, event in await self.load_loss_records()]

    async def load_followups(self) -> list[FollowupMetadata]:
        """Study records written after failures, for escape-rate analysis."""
        followups: list[FollowupMetadata] = []
        for path in await self.store.list_records(self.config.followup_folder):
            try:
                metadata = await self.store.read_metadata(path)
                followups.append(FollowupMetadata.model_validate(metadata))
            except (RecordStoreError, ValidationError) as e:
                logger.warning(f"Skipping follow-up record {path}: {e}")
        return followups

    async def _resolve_topic(self, topic: str) -> Optional[str]:
        name = topic_name(topic)
        if not name:
            return None
        return await self.store.find_by_name(name)

    async def _read_topic(self, path: str) -> Optional[TopicMetadata]:
        try:
            return TopicMetadata.model_validate(await self.store.read_metadata(path))
        except (RecordStoreError, ValidationError) as e:
            logger.warning(f"Cannot read topic {path}: {e}")
            return None

    # ------------------------------------------------------------------
    # Minotaur
    # ------------------------------------------------------------------

    async def recalculate_minotaur(self, now: Optional[datetime] = None) -> Optional[MinotaurChange]:
        """Recompute the dominant archetype and save.

        Idempotent: with no new events the result is unchanged and neither
        history nor the task list grows.
        """
        change = await self._recompute(now or self.clock(), outcome=None)
        await self.save()
        return change

    async def _recompute(self, now: datetime, outcome: Optional[LogOutcome]) -> Optional[MinotaurChange]:
        events = await self.load_events()
        scores = score_archetypes(events, now, self.config.decay_factor, self.config.lookback_days)
        dominant = select_dominant(scores)
        change = apply_dominant(self.state.minotaur, dominant, now.date(), self.config.history_limit)
        if change is None:
            return None

        change.scores = scores
        change.drills = select_drills(
            dominant,
            existing_texts=[t.text for t in self.state.tasks],
            k=self.config.drills_per_activation,
            rng=self.rng,
        )
        for text in change.drills:
            self._add_task(text)

        await self.listener.on_dominant_archetype_changed(change)
        if dominant:
            if change.drills:
                await self._notify(outcome, f"⚔️ Theseus Protocol Initiated: {len(change.drills)} drills added.")
            else:
                await self._notify(outcome, "Theseus Protocol: Drills already active.")
        return change

    # ------------------------------------------------------------------
    # Completed loss logs
    # ------------------------------------------------------------------

    async def log_failure(self, partial: Mapping[str, Any]) -> LogOutcome:
        """Build an event from raw input and log it."""
        return await self.create_loss_log(prepare_event(partial, self.clock()))

    async def create_loss_log(self, event: FailureEvent) -> LogOutcome:
        """Persist a completed loss log and run the remediation pipeline.

        Raises:
            LossLogValidationError: Required fields missing (nothing written)
            RecordStoreError: The record could not be created (state untouched)
        """
        outcome = await self._log_event(event)
        await self.save()
        return outcome

    async def _log_event(self, event: FailureEvent, pending_id: Optional[str] = None) -> LogOutcome:
        validate_completed(event, self.config.archetypes)
        now = self.clock()

        tag = failure_tag(event.timestamp)
        if tag not in event.failure_tags:
            event = event.model_copy(update={"failure_tags": [*event.failure_tags, tag]})

        path = await self._write_record(event, tag)
        if pending_id is not None:
            self.queue.remove_pending_log_by_id(pending_id)
        outcome = LogOutcome(event=event, path=path)
        await self.listener.on_event_logged(event, path)

        await self._tag_sources(event, tag)
        if event.provenance.source_task_id:
            self.deferrals.reset(event.provenance.source_task_id)

        outcome.minotaur_change = await self._recompute(now, outcome)

        self.state.lifetime_events += 1
        outcome.xp = award_xp(self.state, self.config.xp_per_event)
        await self.listener.on_xp_changed(outcome.xp)
        await self._notify(outcome, f"+{self.config.xp_per_event} XP: Wisdom extracted.")

        outcome.streak = update_streak(
            self.state.minotaur, event.archetypes, now.date(), self.config.streak_achievement_days
        )
        if outcome.streak.defeated:
            await self._notify(outcome, f"The Minotaur ({self.current_minotaur}) struck again. Streak reset.")
        elif outcome.streak.achievement:
            await self._notify(
                outcome,
                f"🏆 ACHIEVEMENT: MINOTAUR SLAIN! {outcome.streak.streak_days} days free of {self.current_minotaur}.",
            )
            await self.listener.on_achievement_unlocked(outcome.streak.achievement)

        outcome.bounty = self.bounties.record(event.archetypes)
        if outcome.bounty is not None and outcome.bounty.just_completed:
            bonus = award_xp(self.state, outcome.bounty.bounty.reward_xp)
            outcome.xp = XPChange(
                total=bonus.total,
                gained=outcome.xp.gained + bonus.gained,
                level=bonus.level,
                leveled_up=outcome.xp.leveled_up or bonus.leveled_up,
            )
            await self.listener.on_bounty_completed(outcome.bounty)
            await self.listener.on_xp_changed(bonus)
            await self._notify(
                outcome,
                f"🎯 Bounty complete: {outcome.bounty.bounty.archetype} caught "
                f"{outcome.bounty.bounty.target} times. +{bonus.gained} XP",
            )

        for text in voi_task_texts(event, self.config.voi_archetypes):
            outcome.tasks_created.append(self._add_task(text))
        if outcome.tasks_created:
            await self._notify(outcome, "⚠️ Source Deficit: VOI Review tasks created.")

        if should_propagate_to_topics(event):
            await self._propagate_to_topics(event, outcome)

        try:
            outcome.enshrined = await self._check_enshrinement(path, event, now)
        except RecordStoreError as e:
            logger.error(f"Failed to enshrine thread for {path}: {e}")
            await self._notify(outcome, "Failed to update the codex; run enshrine on this log to retry.")
        if outcome.enshrined:
            outcome.event = event.model_copy(update={"enshrined": True})

        kind = "Risk" if event.is_proactive else "Failure"
        await self._notify(outcome, f"Labyrinth: {kind} logged.")
        return outcome

    async def _write_record(self, event: FailureEvent, tag: str) -> str:
        extra_tags = []
        if event.is_proactive:
            extra_tags.append(FUTURE_RISK_TAG)
        if await self._topics_fading(event.topics):
            extra_tags.append(FADED_INK_TAG)
        if BLOCKED_MARKER in event.source_task:
            extra_tags.append(DEPENDENCY_BLOCKED_TAG)
        body = render_body(event, tag) + "".join(f"\n\n{t}" for t in extra_tags)

        base = note_path(self.config.loss_log_folder, event.timestamp)
        path = base
        suffix = 1
        try:
            while await self.store.exists(path):
                path = f"{base[:-3]}-{suffix}.md"
                suffix += 1
            return await self.store.create(path, event.to_metadata(), body)
        except RecordStoreError as e:
            logger.error(f"Failed to create loss log note {path}: {e}")
            await self.listener.on_notice("Failed to create loss log note.")
            raise

    async def _topics_fading(self, topics: list[str]) -> bool:
        for topic in topics:
            path = await self._resolve_topic(topic)
            if path is None:
                continue
            meta = await self._read_topic(path)
            if meta is not None and meta.decay_risk is not None and meta.decay_risk > FADED_INK_DECAY_RISK:
                return True
        return False

    async def _tag_sources(self, event: FailureEvent, tag: str) -> None:
        """Mark the task or note the failure came from. Failures here are logged, not raised."""
        source_id = event.provenance.source_task_id
        if source_id:
            if _looks_like_path(source_id):
                await self._tag_source_note(source_id, tag)
            else:
                for task in self.state.tasks:
                    if task.id == source_id and tag not in task.text:
                        separator = "" if task.text.endswith(" ") else " "
                        task.text = f"{task.text}{separator}{tag}"

        if BLOCKED_MARKER in event.source_task:
            linked = link_target(event.source_task)
            note = await self.store.find_by_name(linked) if linked else None
            if note is not None:
                await self._safe_modify(
                    note, lambda meta: add_list_item(meta, "tags", DEPENDENCY_BLOCKED_TAG.lstrip("#"))
                )

    async def _tag_source_note(self, path: str, tag: str) -> None:
        if not await self.store.exists(path):
            logger.debug(f"Source note {path} not found; skipping failure tag")
            return

        def mutate(meta: dict[str, Any]) -> None:
            add_list_item(meta, "labyrinthFailures", tag.replace("#failed-on-", ""))
            add_list_item(meta, "labyrinthStatus", KINTSUGI_TAG)

        await self._safe_modify(path, mutate)

    async def _safe_modify(self, path: str, mutate: Callable[[dict[str, Any]], Any]) -> bool:
        try:
            await self.store.modify_metadata(path, mutate)
            return True
        except RecordStoreError as e:
            logger.error(f"Failed to update {path}: {e}")
            return False

    async def _propagate_to_topics(self, event: FailureEvent, outcome: LogOutcome) -> None:
        """Mark topic records unstable and step their garden status down once."""
        for topic in event.topics:
            path = await self._resolve_topic(topic)
            if path is None:
                continue
            changes: dict[str, Any] = {}

            def mutate(meta: dict[str, Any]) -> None:
                changes["unstable"] = mark_unstable(meta)
                status = meta.get("gardenStatus")
                if isinstance(status, str) and status:
                    stepped = step_down_garden(status)
                    if stepped is not None:
                        meta["gardenStatus"] = stepped
                        changes["garden"] = stepped

            if not await self._safe_modify(path, mutate):
                continue
            if changes.get("unstable"):
                outcome.topics_marked.append(path)
            if "garden" in changes:
                outcome.garden_changes[path] = changes["garden"]
                await self._notify(outcome, f"🍂 {record_basename(path)} decayed to {changes['garden']}.")

    async def _check_enshrinement(self, path: str, event: FailureEvent, now: datetime) -> bool:
        """Enshrine the thread when this event is its Nth exact occurrence."""
        thread = event.thread
        if not thread:
            return False
        matches = [(p, e) for p, e in await self.load_loss_records() if e.thread == thread]
        if len(matches) != self.config.enshrine_repeat_count:
            return False
        if any(e.enshrined for _, e in matches):
            return False
        await self._enshrine(path, thread, now)
        return True

    async def _enshrine(self, path: str, thread: str, now: datetime) -> None:
        codex = self.config.codex_path
        if not await self.store.exists(codex):
            await self.store.create(codex, {"type": "codex"}, CODEX_HEADER)
        await self.store.append(codex, codex_entry(thread, path, now))
        await self.store.modify_metadata(path, lambda meta: meta.__setitem__("enshrined", True))
        logger.info(f"Thread enshrined in codex: {thread!r}")
        await self.listener.on_notice(f"📜 Thread enshrined: {thread}")

    async def enshrine_thread(self, path: str) -> bool:
        """Manually enshrine a single record's thread; False if already enshrined or empty."""
        metadata = await self.store.read_metadata(path)
        event = parse_loss_record(path, metadata)
        if event.enshrined or not event.thread:
            return False
        await self._enshrine(path, event.thread, self.clock())
        return True

    # ------------------------------------------------------------------
    # Deferred loss logs
    # ------------------------------------------------------------------

    async def defer_loss_log(self, partial: Mapping[str, Any]) -> PendingEvent:
        """Queue a failure for later reflection; only the source task is required."""
        pending = self.queue.add_pending_log(build_pending(partial))
        await self.listener.on_notice("Labyrinth: Failure logged for later reflection.")
        await self.save()
        return pending

    def get_pending_logs(self) -> list[PendingEvent]:
        return self.queue.get_pending_logs()

    async def complete_pending_log(self, pending_id: str, details: Mapping[str, Any]) -> LogOutcome:
        """Turn a deferred item into a full loss log and remove it from the queue.

        The item stays queued if validation or the record write fails, and
        leaves the queue as soon as the record exists.

        Raises:
            LabyrinthError: No pending item with that id
            LossLogValidationError: Required fields missing
        """
        pending = self.queue.get(pending_id)
        if pending is None:
            raise LabyrinthError(f"No pending loss log with id {pending_id}")

        merged: dict[str, Any] = {
            "source_task": pending.source_task,
            "failure_type": pending.initial_failure_type,
            "archetypes": list(pending.initial_archetypes),
            "aura": pending.initial_aura,
            "topics": list(pending.initial_topics),
            "realization_point": pending.realization_point,
        }
        merged.update({k: v for k, v in details.items() if v is not None})
        merged["provenance"] = {
            "origin": Origin.DEFERRED,
            "source_task_id": pending.original_task_id,
        }

        outcome = await self._log_event(prepare_event(merged, self.clock()), pending_id)
        await self.listener.on_notice("Labyrinth: Deferred failure logged successfully.")
        await self.save()
        return outcome

    async def discard_pending_log(self, pending_id: str) -> Optional[PendingEvent]:
        """Drop a deferred item without logging it, closing its deferral loop."""
        removed = self.queue.remove_pending_log_by_id(pending_id)
        if removed is None:
            return None
        if removed.original_task_id:
            self.deferrals.reset(removed.original_task_id)
        await self.save()
        return removed

    async def record_task_deferral(self, task_id: str) -> bool:
        """Count a deferral of an external task; True once a loss log should be suggested."""
        self.deferrals.increment(task_id)
        await self.save()
        return self.deferrals.should_prompt(task_id)

    # ------------------------------------------------------------------
    # Bounties and resets
    # ------------------------------------------------------------------

    async def start_bounty(
        self,
        archetype: str,
        target: Optional[int] = None,
        reward_xp: Optional[int] = None,
    ) -> Bounty:
        bounty = self.bounties.start(
            archetype,
            target if target is not None else self.config.bounty_target,
            reward_xp if reward_xp is not None else self.config.bounty_reward_xp,
        )
        await self.save()
        return bounty

    async def abandon_bounty(self) -> Optional[Bounty]:
        bounty = self.bounties.abandon()
        await self.save()
        return bounty

    async def weekly_reset(self) -> None:
        """Clear the deferred queue, deferral counters and Minotaur history.

        XP and lifetime counters are kept.
        """
        dropped = self.queue.clear()
        self.deferrals.clear()
        self.state.minotaur.history = []
        logger.info(f"Weekly reset: dropped {dropped} pending log(s)")
        await self.save()

    # ------------------------------------------------------------------
    # Record actions
    # ------------------------------------------------------------------

    async def resolve_risk(self, path: str, manifested: bool) -> Optional[XPChange]:
        """Close out a proactive risk; avoiding it earns XP.

        Raises:
            LabyrinthError: The record is not an unresolved proactive risk
        """
        metadata = await self.store.read_metadata(path)
        event = parse_loss_record(path, metadata)
        if not event.is_proactive:
            raise LabyrinthError(f"{path} is not a proactive risk")
        if metadata.get("resolved"):
            raise LabyrinthError(f"{path} is already resolved")

        def mutate(meta: dict[str, Any]) -> None:
            meta["resolved"] = True
            meta["outcome"] = "Manifested" if manifested else "Avoided"
            if not manifested:
                tags = meta.get("tags") if isinstance(meta.get("tags"), list) else []
                meta["tags"] = [t for t in tags if t != FUTURE_RISK_TAG.lstrip("#")]
                add_list_item(meta, "tags", "loss/avoided")

        await self.store.modify_metadata(path, mutate)
        change = None
        if not manifested:
            change = award_xp(self.state, self.config.risk_avoided_xp)
            await self.listener.on_xp_changed(change)
            await self.listener.on_notice(f"Risk avoided! +{self.config.risk_avoided_xp} XP")
        await self.save()
        return change

    async def create_guardian_task(self, path: str) -> TaskItem:
        """Turn a record's principle into a standing guardian task.

        Raises:
            LossLogValidationError: The record carries no thread
        """
        thread = str((await self.store.read_metadata(path)).get("ariadnesThread") or "").strip()
        if not thread:
            raise LossLogValidationError("No Ariadne's Thread found in this note.", field_name="principle")
        task = self._add_task(f'🛡️ Guardian: "{thread}" (from [[{record_basename(path)}]])')
        await self.save()
        return task

    async def daily_intent(self) -> Optional[str]:
        """A random past principle to carry through the day."""
        threads = [e.thread for e in await self.load_events() if len(e.thread) > DAILY_INTENT_MIN_LENGTH]
        if not threads:
            return None
        return self.rng.choice(threads)

    async def check_thread_obsolescence(self, now: Optional[datetime] = None) -> list[ArchivedThread]:
        """Archive old threads whose topics have since been mastered.

        For each topic, only the latest log carrying a given thread counts.
        A thread is archived when that log is older than 30 days and the
        topic's confidence is at least 4.
        """
        now = now or self.clock()
        cutoff = now - timedelta(days=OBSOLESCENCE_DAYS)

        latest: dict[str, dict[str, tuple[datetime, str]]] = {}
        for path, event in await self.load_loss_records():
            if not event.thread:
                continue
            for topic in event.topics:
                topic_path = await self._resolve_topic(topic)
                if topic_path is None:
                    continue
                threads = latest.setdefault(topic_path, {})
                seen = threads.get(event.thread)
                if seen is None or event.timestamp > seen[0]:
                    threads[event.thread] = (event.timestamp, path)

        archived: list[ArchivedThread] = []
        for topic_path, threads in latest.items():
            topic = await self._read_topic(topic_path)
            if topic is None or topic.my_confidence is None or topic.my_confidence < MASTERED_CONFIDENCE:
                continue
            for thread, (timestamp, log_path) in threads.items():
                if timestamp >= cutoff:
                    continue
                added: dict[str, bool] = {}

                def mutate(meta: dict[str, Any]) -> None:
                    added["status"] = add_list_item(meta, "labyrinthStatus", ARCHIVED_STATUS)

                if not await self._safe_modify(log_path, mutate) or not added.get("status"):
                    continue
                entry = ArchivedThread(
                    thread=thread,
                    topic_path=topic_path,
                    archived_on=now.date(),
                    reason=f"Topic confidence {topic.my_confidence:g} >= {MASTERED_CONFIDENCE}",
                )
                self.state.archived_threads.append(entry)
                archived.append(entry)
                logger.info(f"Archived thread in {log_path}: {thread!r}")

        await self.save()
        return archived

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------

    async def analyze(self, now: Optional[datetime] = None) -> AnalyticsReport:
        """Run every read-only scan over all stored loss logs."""
        events = await self.load_events()
        followups = await self.load_followups()
        return build_report(
            events,
            followups,
            now or self.clock(),
            decay_factor=self.config.decay_factor,
            current_minotaur=self.current_minotaur,
        )
