"""Pydantic schemas for the Labyrinth of Loss.

This module defines the data types the engine owns:
- FailureEvent: one logged failure (or anticipated risk)
- PendingEvent: a deferred failure awaiting reflection
- MinotaurState / Bounty / TaskItem: transient gamification state
- LabyrinthState: the single settings aggregate persisted after every mutation
- RecordMetadata / FollowupMetadata / TopicMetadata: typed views over the
  frontmatter of records held by the external document store
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_AURA = "#aura-mid"
MAX_ROOT_CAUSES = 5


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(timezone.utc)


def _ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _as_list(value: Any) -> Any:
    """Coerce frontmatter scalars (None, a lone string) into lists."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    return value


class FailureType(str, Enum):
    """Broad category of a failure."""
    KNOWLEDGE_GAP = "Knowledge Gap"
    SKILL_GAP = "Skill Gap"
    PROCESS_FAILURE = "Process Failure"


class Origin(str, Enum):
    """How a loss log entered the labyrinth."""
    MANUAL = "manual"
    DEFERRED = "deferred"
    AUTO = "auto"
    QUICK_LOG = "quick-log"
    PROACTIVE = "proactive"              # Anticipated risk, not yet a failure
    PROACTIVE_QUICK = "proactive-quick"


# Older records name the proactive origins after the scrying pool
_LEGACY_ORIGINS = {
    "scrying-pool": Origin.PROACTIVE.value,
    "scrying-pool-quick": Origin.PROACTIVE_QUICK.value,
    "quickLog": Origin.QUICK_LOG.value,
    "proactiveQuick": Origin.PROACTIVE_QUICK.value,
}

PROACTIVE_ORIGINS = frozenset({Origin.PROACTIVE, Origin.PROACTIVE_QUICK})


class Provenance(BaseModel):
    """Where a loss log came from and which external task triggered it."""
    model_config = ConfigDict(populate_by_name=True)

    origin: Origin = Origin.MANUAL
    source_task_id: Optional[str] = Field(default=None, alias="sourceTaskId")

    @field_validator("origin", mode="before")
    @classmethod
    def _map_legacy_origin(cls, value: Any) -> Any:
        if value is None:
            return Origin.MANUAL
        if isinstance(value, str):
            return _LEGACY_ORIGINS.get(value, value)
        return value


class FailureEvent(BaseModel):
    """One logged failure or anticipated risk."""

    id: str
    source_task: str
    failure_type: FailureType = FailureType.KNOWLEDGE_GAP
    archetypes: list[str] = Field(default_factory=list)
    impact: int = Field(default=1, ge=1, le=5)
    topics: list[str] = Field(default_factory=list)
    papers: list[str] = Field(default_factory=list)
    aura: str = DEFAULT_AURA
    emotional_state: Optional[str] = None
    root_cause_chain: list[str] = Field(default_factory=list, max_length=MAX_ROOT_CAUSES)
    principle: str = ""
    counter_factual: Optional[str] = None
    evidence_ref: Optional[str] = None
    linked_test_ref: Optional[str] = None
    realization_point: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)
    provenance: Provenance = Field(default_factory=Provenance)
    failure_tags: list[str] = Field(default_factory=list)
    enshrined: bool = False

    @field_validator("archetypes")
    @classmethod
    def _dedupe_archetypes(cls, value: list[str]) -> list[str]:
        seen: list[str] = []
        for archetype in value:
            archetype = archetype.strip()
            if archetype and archetype not in seen:
                seen.append(archetype)
        return seen

    @field_validator("timestamp")
    @classmethod
    def _aware_timestamp(cls, value: datetime) -> datetime:
        return _ensure_aware(value)

    @property
    def is_proactive(self) -> bool:
        """True for anticipated risks logged before the failure happened."""
        return self.provenance.origin in PROACTIVE_ORIGINS

    @property
    def thread(self) -> str:
        """The principle with surrounding whitespace removed."""
        return self.principle.strip()

    def to_metadata(self) -> dict[str, Any]:
        """Serialize to the persisted frontmatter schema."""
        return RecordMetadata.from_event(self).to_frontmatter()


class PendingEvent(BaseModel):
    """A failure captured for later reflection.

    Only ``source_task`` is required; the rest are hints pre-filled into the
    completion form.
    """

    pending_id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    source_task: str
    initial_failure_type: Optional[FailureType] = None
    initial_archetypes: list[str] = Field(default_factory=list)
    initial_aura: Optional[str] = None
    initial_topics: list[str] = Field(default_factory=list)
    original_task_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)
    is_proactive: bool = False
    realization_point: Optional[str] = None


class MinotaurEntry(BaseModel):
    """A past dominant archetype and the day it was dethroned."""
    date: date
    archetype: str


class MinotaurState(BaseModel):
    """Derived state of the dominant failure archetype."""

    current: str = ""
    history: list[MinotaurEntry] = Field(default_factory=list)
    streak_days: int = Field(default=0, ge=0)
    last_defeat_date: Optional[date] = None


class Bounty(BaseModel):
    """A tracked goal to catch one archetype ``target`` times for a reward."""

    id: str = Field(default_factory=lambda: f"bounty_{uuid.uuid4().hex[:8]}")
    archetype: str
    count: int = Field(default=0, ge=0)
    target: int = Field(ge=1)
    reward_xp: int = Field(default=0, ge=0)
    completed: bool = False

    @model_validator(mode="after")
    def _count_within_target(self) -> "Bounty":
        if self.count > self.target:
            raise ValueError(f"Bounty count {self.count} exceeds target {self.target}")
        return self

    @property
    def is_active(self) -> bool:
        return not self.completed


class TaskItem(BaseModel):
    """An entry in the external task list (drills, VOI reviews, guardians)."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:10])
    text: str
    created_at: datetime = Field(default_factory=utc_now)


class ArchivedThread(BaseModel):
    """A principle retired because its topic has since been mastered."""

    thread: str
    topic_path: str
    archived_on: date
    reason: str


class LevelInfo(BaseModel):
    """A row of the level table."""
    level: int
    xp: int
    title: str


class LabyrinthState(BaseModel):
    """The settings aggregate owned by the engine.

    Loaded once at startup and saved after every mutation. Holds only
    transient or derived state; the loss log records themselves live in
    the document store.
    """

    xp: int = Field(default=0, ge=0)
    lifetime_events: int = Field(default=0, ge=0)
    minotaur: MinotaurState = Field(default_factory=MinotaurState)
    bounty: Optional[Bounty] = None
    pending: list[PendingEvent] = Field(default_factory=list)
    deferral_counts: dict[str, int] = Field(default_factory=dict)
    tasks: list[TaskItem] = Field(default_factory=list)
    archived_threads: list[ArchivedThread] = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for storage."""
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LabyrinthState":
        """Deserialize from storage."""
        return cls.model_validate(data)


# =============================================================================
# Record metadata views
# =============================================================================


class RecordMetadata(BaseModel):
    """Frontmatter of a stored loss log, validated at the read boundary."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    loss_id: str = Field(default="", alias="lossId")
    source_task: str = Field(default="Unknown Task", alias="sourceTask")
    failure_type: FailureType = Field(default=FailureType.KNOWLEDGE_GAP, alias="failureType")
    failure_archetypes: list[str] = Field(default_factory=list, alias="failureArchetypes")
    impact: int = Field(default=1, ge=1, le=5)
    syllabus_topics: list[str] = Field(default_factory=list, alias="syllabusTopics")
    syllabus_papers: list[str] = Field(default_factory=list, alias="syllabusPapers")
    aura: str = DEFAULT_AURA
    emotional_state: Optional[str] = Field(default=None, alias="emotionalState")
    root_cause_chain: list[str] = Field(default_factory=list, alias="rootCauseChain")
    ariadnes_thread: str = Field(default="", alias="ariadnesThread")
    counter_factual: Optional[str] = Field(default=None, alias="counterFactual")
    evidence_link: Optional[str] = Field(default=None, alias="evidenceLink")
    linked_mock_test: Optional[str] = Field(default=None, alias="linkedMockTest")
    failure_realization_point: Optional[str] = Field(default=None, alias="failureRealizationPoint")
    timestamp: datetime
    provenance: Provenance = Field(default_factory=Provenance)
    confidence_score: Optional[float] = Field(default=None, alias="confidenceScore")
    question_type: Optional[str] = Field(default=None, alias="questionType")
    source_type: Optional[str] = Field(default=None, alias="sourceType")
    exam_phase: Optional[str] = Field(default=None, alias="examPhase")
    failure_tags: list[str] = Field(default_factory=list, alias="failureTags")
    enshrined: bool = False

    @field_validator(
        "failure_archetypes",
        "syllabus_topics",
        "syllabus_papers",
        "root_cause_chain",
        "failure_tags",
        mode="before",
    )
    @classmethod
    def _listify(cls, value: Any) -> Any:
        return _as_list(value)

    @field_validator("aura", "ariadnes_thread", "source_task", mode="before")
    @classmethod
    def _blank_to_default(cls, value: Any, info) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return cls.model_fields[info.field_name].default
        return value

    @field_validator("provenance", mode="before")
    @classmethod
    def _provenance_default(cls, value: Any) -> Any:
        return value if value is not None else {}

    @field_validator("timestamp")
    @classmethod
    def _aware_timestamp(cls, value: datetime) -> datetime:
        return _ensure_aware(value)

    @classmethod
    def from_event(cls, event: FailureEvent) -> "RecordMetadata":
        return cls(
            loss_id=event.id,
            source_task=event.source_task,
            failure_type=event.failure_type,
            failure_archetypes=list(event.archetypes),
            impact=event.impact,
            syllabus_topics=list(event.topics),
            syllabus_papers=list(event.papers),
            aura=event.aura,
            emotional_state=event.emotional_state,
            root_cause_chain=list(event.root_cause_chain),
            ariadnes_thread=event.principle,
            counter_factual=event.counter_factual,
            evidence_link=event.evidence_ref,
            linked_mock_test=event.linked_test_ref,
            failure_realization_point=event.realization_point,
            timestamp=event.timestamp,
            provenance=event.provenance,
            failure_tags=list(event.failure_tags),
            enshrined=event.enshrined,
        )

    def to_event(self) -> FailureEvent:
        """Convert to the engine's canonical event type."""
        return FailureEvent(
            id=self.loss_id,
            source_task=self.source_task,
            failure_type=self.failure_type,
            archetypes=self.failure_archetypes,
            impact=self.impact,
            topics=self.syllabus_topics,
            papers=self.syllabus_papers,
            aura=self.aura,
            emotional_state=self.emotional_state,
            root_cause_chain=self.root_cause_chain[:MAX_ROOT_CAUSES],
            principle=self.ariadnes_thread,
            counter_factual=self.counter_factual,
            evidence_ref=self.evidence_link,
            linked_test_ref=self.linked_mock_test,
            realization_point=self.failure_realization_point,
            timestamp=self.timestamp,
            provenance=self.provenance,
            failure_tags=self.failure_tags,
            enshrined=self.enshrined,
        )

    def to_frontmatter(self) -> dict[str, Any]:
        """Dump with the persisted camelCase keys, omitting unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class FollowupMetadata(BaseModel):
    """Frontmatter of a study/reflection record written after a failure."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    topic: str = ""
    understanding: str = ""
    created: Optional[datetime] = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def _listify(cls, value: Any) -> Any:
        return _as_list(value)

    @field_validator("created")
    @classmethod
    def _aware_created(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _ensure_aware(value) if value is not None else None

    @property
    def is_high_understanding(self) -> bool:
        value = self.understanding.strip().lower()
        return value in {"🔼", "high", "🟩 high"} or value.startswith("🔼")


class TopicMetadata(BaseModel):
    """The fields of a syllabus topic record that the engine reads."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    garden_status: Optional[str] = Field(default=None, alias="gardenStatus")
    tags: list[str] = Field(default_factory=list)
    decay_risk: Optional[float] = None
    my_confidence: Optional[float] = Field(default=None, alias="MyConfidence")

    @field_validator("tags", mode="before")
    @classmethod
    def _listify(cls, value: Any) -> Any:
        return _as_list(value)
