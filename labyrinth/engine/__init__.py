"""Labyrinth engine: scoring, queue, remediation and the orchestrating service.

Pure state logic lives in the submodules exported here. The I/O-bound
facade is ``labyrinth.engine.service.LabyrinthEngine``.
"""

from labyrinth.engine.builder import (
    UNKNOWN_TASK,
    build_pending,
    generate_loss_id,
    prepare_event,
    validate_completed,
)
from labyrinth.engine.scoring import (
    MinotaurChange,
    apply_dominant,
    decay_weight,
    leaderboard,
    raw_counts,
    score_archetypes,
    select_dominant,
)
from labyrinth.engine.history import (
    ACHIEVEMENT_MINOTAUR_SLAYER,
    StreakUpdate,
    TrendReport,
    analyze_trends,
    update_streak,
)
from labyrinth.engine.queue import DeferralCounter, PendingQueue
from labyrinth.engine.remediation import (
    LEVEL_TABLE,
    BountyBoard,
    BountyProgress,
    XPChange,
    award_xp,
    level_for_xp,
)
from labyrinth.engine.drills import THESEUS_DRILLS, select_drills
from labyrinth.engine.signals import LabyrinthListener, LogOutcome

__all__ = [
    # Event builder
    "UNKNOWN_TASK",
    "build_pending",
    "generate_loss_id",
    "prepare_event",
    "validate_completed",
    # Scoring
    "MinotaurChange",
    "apply_dominant",
    "decay_weight",
    "leaderboard",
    "raw_counts",
    "score_archetypes",
    "select_dominant",
    # History
    "ACHIEVEMENT_MINOTAUR_SLAYER",
    "StreakUpdate",
    "TrendReport",
    "analyze_trends",
    "update_streak",
    # Queue
    "DeferralCounter",
    "PendingQueue",
    # Remediation
    "LEVEL_TABLE",
    "BountyBoard",
    "BountyProgress",
    "XPChange",
    "award_xp",
    "level_for_xp",
    # Drills
    "THESEUS_DRILLS",
    "select_drills",
    # Signals
    "LabyrinthListener",
    "LogOutcome",
]
