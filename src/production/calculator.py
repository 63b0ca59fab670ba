"""Production yield: recursive energy formula over the team role, plus premium bonus."""

import math
from typing import Optional

from src.core.models import Recipe, TeamRole


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def _value(v: Optional[float], default: float = 0.0) -> float:
    return default if v is None else float(v)


def compute_yield(role: Optional[TeamRole]) -> int:
    """Units produced by one cycle.

    Sum over level 0..max_depth of round(energy(level) * decay^level * branches^level),
    energy(level) = base_energy + level_energy * level. Each level is rounded before summing.
    No role or no max_depth -> 0.
    """
    if role is None or role.max_depth is None:
        return 0
    base = _value(role.base_energy)
    per_level = _value(role.level_energy)
    decay = _value(role.decay, 1.0)
    branches = _value(role.branches, 1.0)
    total = 0
    for level in range(int(role.max_depth) + 1):
        energy = base + per_level * level
        total += _round_half_up(energy * decay**level * branches**level)
    return total


def apply_premium_bonus(units: int, recipe: Optional[Recipe]) -> int:
    """round(units * bonus); bonus is 1.0 without a recipe or a premium_bonus."""
    bonus = 1.0
    if recipe is not None and recipe.premium_bonus is not None:
        bonus = float(recipe.premium_bonus)
    return _round_half_up(units * bonus)
