"""Typed notification interface and per-call outcome records.

Hosts subclass LabyrinthListener and override the hooks they care about;
the engine awaits each hook after the corresponding state change. Every
mutating engine call also returns an outcome object describing what
happened, so callers that do not register a listener lose nothing.
"""

from dataclasses import dataclass, field
from typing import Optional

from labyrinth.engine.history import StreakUpdate
from labyrinth.engine.remediation import BountyProgress, XPChange
from labyrinth.engine.scoring import MinotaurChange
from labyrinth.schemas import FailureEvent, TaskItem


class LabyrinthListener:
    """No-op base listener."""

    async def on_event_logged(self, event: FailureEvent, path: str) -> None:
        pass

    async def on_dominant_archetype_changed(self, change: MinotaurChange) -> None:
        pass

    async def on_xp_changed(self, change: XPChange) -> None:
        pass

    async def on_achievement_unlocked(self, name: str) -> None:
        pass

    async def on_bounty_completed(self, progress: BountyProgress) -> None:
        pass

    async def on_notice(self, message: str) -> None:
        pass


@dataclass
class LogOutcome:
    """Everything that followed from one completed loss log."""
    event: FailureEvent
    path: str
    minotaur_change: Optional[MinotaurChange] = None
    xp: Optional[XPChange] = None
    streak: Optional[StreakUpdate] = None
    bounty: Optional[BountyProgress] = None
    tasks_created: list[TaskItem] = field(default_factory=list)
    topics_marked: list[str] = field(default_factory=list)
    garden_changes: dict[str, str] = field(default_factory=dict)
    enshrined: bool = False
    notices: list[str] = field(default_factory=list)
