"""Rule constants and engine configuration."""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class RuleConfig:
    """Adjudication constants.

    Attributes:
        max_moves: Move counter value at which the game is adjudicated
        komi: Bonus added to HAN's material to compensate for moving second
        low_material: A side at or below this material value triggers adjudication
    """

    max_moves: int = 200
    komi: float = 1.5
    low_material: int = 10


DEFAULT_RULES = RuleConfig()

# Difficulty level (1-9) -> search depth
DIFFICULTY_DEPTHS = {level: level for level in range(1, 10)}

DEFAULT_DEPTH = 3


def depth_for_difficulty(level: int) -> int:
    """Map a difficulty level to a search depth (unknown levels fall back to 1)."""
    return DIFFICULTY_DEPTHS.get(level, 1)


def get_default_depth() -> int:
    """Default engine depth, overridable with the JANGGI_AI_DEPTH env var."""
    env_depth = os.environ.get("JANGGI_AI_DEPTH")
    if env_depth:
        try:
            depth = int(env_depth)
        except ValueError:
            return DEFAULT_DEPTH
        if depth > 0:
            return depth
    return DEFAULT_DEPTH
