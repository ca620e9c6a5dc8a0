"""Configuration for the Labyrinth engine."""
import logging
from dataclasses import dataclass, field, fields
from typing import Any, List

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_ARCHETYPES = [
    "silly-mistake",
    "conceptual-error",
    "time-mismanagement",
    "overthinking",
    "source-deficit",
    "procrastination",
    "distraction",
    "faded-knowledge",
    "test-anxiety",
    "poor-structure",
]

# Archetypes that point at unreliable sources and trigger a VOI review
DEFAULT_VOI_ARCHETYPES = ["source-deficit", "credibility-gap"]

DECAY_FACTOR_MIN = 0.8
DECAY_FACTOR_MAX = 0.99


@dataclass
class LabyrinthConfig:
    """Recognized engine options.

    The lookback window is fixed at 30 days; it is exposed here so the scans
    and the Minotaur computation read the same constant.
    """

    loss_log_folder: str = "40 Reflections/Labyrinth"
    codex_path: str = "40 Reflections/Codex of Threads.md"
    followup_folder: str = "40 Reflections/Alchemist"
    archetypes: List[str] = field(default_factory=lambda: list(DEFAULT_FAILURE_ARCHETYPES))
    voi_archetypes: List[str] = field(default_factory=lambda: list(DEFAULT_VOI_ARCHETYPES))

    lookback_days: int = 30
    decay_factor: float = 0.95  # 5% weight lost per day
    history_limit: int = 30

    xp_per_event: int = 10
    risk_avoided_xp: int = 20
    bounty_target: int = 3
    bounty_reward_xp: int = 50

    deferral_threshold: int = 2  # Deferrals before a loss log is suggested
    streak_achievement_days: int = 21
    enshrine_repeat_count: int = 3
    drills_per_activation: int = 2

    def __post_init__(self):
        if not DECAY_FACTOR_MIN <= self.decay_factor <= DECAY_FACTOR_MAX:
            raise ValueError(
                f"decay_factor must be within [{DECAY_FACTOR_MIN}, {DECAY_FACTOR_MAX}], "
                f"got {self.decay_factor}"
            )
        if self.lookback_days != 30:
            raise ValueError("lookback_days is fixed at 30")
        for name in (
            "history_limit",
            "bounty_target",
            "deferral_threshold",
            "streak_achievement_days",
            "enshrine_repeat_count",
            "drills_per_activation",
        ):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be >= 1")
        if self.xp_per_event < 0 or self.bounty_reward_xp < 0 or self.risk_avoided_xp < 0:
            raise ValueError("XP rewards must be non-negative")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LabyrinthConfig":
        """Build a config from a mapping, ignoring keys this version does not know."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> dict[str, Any]:
        """Serialize for storage."""
        return {f.name: getattr(self, f.name) for f in fields(self)}
