"""Remediation & Gamification state machine.

Pure state transitions applied after each completed loss log: XP and
levels, the active bounty, value-of-information review tasks, and the
consequences propagated onto topic records. The I/O around them lives in
the engine service.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence

from labyrinth.errors import BountyError
from labyrinth.notes import topic_name
from labyrinth.schemas import Bounty, FailureEvent, FailureType, LabyrinthState, LevelInfo

logger = logging.getLogger(__name__)

UNSTABLE_TAG = "labyrinth/unstable"
KINTSUGI_TAG = "labyrinth/kintsugi-highlight"
ARCHIVED_STATUS = "archived"

# Ordered from healthiest to most decayed; each stage is (emoji, name)
GARDEN_LADDER: tuple[tuple[str, str], ...] = (
    ("🌳", "fresh"),
    ("🍂", "wilted"),
    ("🍁", "seedling"),
)

LEVEL_TABLE: list[LevelInfo] = [
    LevelInfo(level=1, xp=0, title="Wanderer"),
    LevelInfo(level=2, xp=100, title="Thread-Seeker"),
    LevelInfo(level=3, xp=250, title="Labyrinth Walker"),
    LevelInfo(level=4, xp=500, title="Minotaur Hunter"),
    LevelInfo(level=5, xp=1000, title="Theseus"),
]


# =============================================================================
# XP and levels
# =============================================================================


def level_for_xp(xp: int, table: Sequence[LevelInfo] = LEVEL_TABLE) -> LevelInfo:
    """Highest level whose threshold ``xp`` has reached."""
    current = table[0]
    for row in table:
        if xp >= row.xp:
            current = row
        else:
            break
    return current


def next_level(xp: int, table: Sequence[LevelInfo] = LEVEL_TABLE) -> Optional[LevelInfo]:
    """The next level to reach, or None at the top of the table."""
    for row in table:
        if row.xp > xp:
            return row
    return None


@dataclass
class XPChange:
    total: int
    gained: int
    level: LevelInfo
    leveled_up: bool = False


def award_xp(state: LabyrinthState, amount: int, table: Sequence[LevelInfo] = LEVEL_TABLE) -> XPChange:
    """Add ``amount`` XP; the total never decreases."""
    if amount < 0:
        raise ValueError("XP awards must be non-negative")
    before = level_for_xp(state.xp, table)
    state.xp += amount
    after = level_for_xp(state.xp, table)
    if after.level > before.level:
        logger.info(f"Level up: {before.title} -> {after.title} ({state.xp} XP)")
    return XPChange(total=state.xp, gained=amount, level=after, leveled_up=after.level > before.level)


# =============================================================================
# Bounties
# =============================================================================


@dataclass
class BountyProgress:
    bounty: Bounty
    just_completed: bool = False


class BountyBoard:
    """Manages the single active bounty held in the state aggregate."""

    def __init__(self, state: LabyrinthState):
        self.state = state

    @property
    def active(self) -> Optional[Bounty]:
        bounty = self.state.bounty
        return bounty if bounty is not None and not bounty.completed else None

    def start(self, archetype: str, target: int, reward_xp: int) -> Bounty:
        """Post a new bounty against ``archetype``.

        Raises:
            BountyError: Another bounty is still active, or arguments are invalid
        """
        if self.active is not None:
            raise BountyError(f"A bounty on '{self.active.archetype}' is already active")
        if not archetype.strip():
            raise BountyError("A bounty needs an archetype")
        if target < 1 or reward_xp < 0:
            raise BountyError("Bounty target must be >= 1 and reward must be >= 0")
        self.state.bounty = Bounty(archetype=archetype.strip(), target=target, reward_xp=reward_xp)
        logger.info(f"Bounty posted: catch '{archetype}' {target} times for {reward_xp} XP")
        return self.state.bounty

    def abandon(self) -> Optional[Bounty]:
        """Drop the active bounty, if any."""
        bounty = self.active
        if bounty is not None:
            self.state.bounty = None
            logger.info(f"Bounty on '{bounty.archetype}' abandoned at {bounty.count}/{bounty.target}")
        return bounty

    def record(self, archetypes: Iterable[str]) -> Optional[BountyProgress]:
        """Count an event against the active bounty if it carries its archetype.

        The count is capped at the target and ``completed`` flips exactly once.
        """
        bounty = self.active
        if bounty is None or bounty.archetype not in set(archetypes):
            return None
        bounty.count = min(bounty.count + 1, bounty.target)
        if bounty.count >= bounty.target:
            bounty.completed = True
            logger.info(f"Bounty on '{bounty.archetype}' completed")
            return BountyProgress(bounty=bounty, just_completed=True)
        return BountyProgress(bounty=bounty)


# =============================================================================
# Value of information
# =============================================================================


def voi_task_texts(event: FailureEvent, voi_archetypes: Iterable[str]) -> list[str]:
    """Review tasks for failures caused by unreliable sources.

    One task per referenced topic, or a single generic one without topics.
    Empty when the event carries no source-credibility archetype.
    """
    if not set(event.archetypes) & set(voi_archetypes):
        return []
    if event.topics:
        return [
            f"🔍 VOI Review: Re-evaluate source credibility for [[{topic_name(t)}]] (Triggered by Labyrinth)"
            for t in event.topics
        ]
    return [f'🔍 VOI Review: Audit sources for recent failure on "{event.source_task}"']


# =============================================================================
# Topic consequences
# =============================================================================


def add_list_item(metadata: dict[str, Any], key: str, item: str) -> bool:
    """Idempotently add ``item`` to a list-valued metadata field."""
    current = metadata.get(key)
    if current is None:
        items: list = []
    elif isinstance(current, list):
        items = list(current)
    else:
        items = [str(current)]
    if item in items:
        return False
    items.append(item)
    metadata[key] = items
    return True


def mark_unstable(metadata: dict[str, Any]) -> bool:
    """Tag a topic record as unstable; False if it already was."""
    return add_list_item(metadata, "tags", UNSTABLE_TAG)


def garden_stage(status: str) -> Optional[int]:
    """Index of ``status`` on the garden ladder, or None if unrecognized."""
    lowered = status.lower()
    for index, (emoji, name) in enumerate(GARDEN_LADDER):
        if emoji in status or name in lowered:
            return index
    return None


def step_down_garden(status: str) -> Optional[str]:
    """Next-lower garden status, or None at the lowest stage or for unknown values."""
    stage = garden_stage(status)
    if stage is None or stage >= len(GARDEN_LADDER) - 1:
        return None
    emoji, name = GARDEN_LADDER[stage]
    next_emoji, next_name = GARDEN_LADDER[stage + 1]
    stepped = status.replace(emoji, next_emoji)
    index = stepped.lower().find(name)
    if index >= 0:
        replacement = next_name.capitalize() if stepped[index].isupper() else next_name
        stepped = stepped[:index] + replacement + stepped[index + len(name):]
    return stepped


def should_propagate_to_topics(event: FailureEvent) -> bool:
    """Process failures say nothing about topic mastery, so they are skipped."""
    return event.failure_type != FailureType.PROCESS_FAILURE and bool(event.topics)
