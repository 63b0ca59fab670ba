"""Production economics: yield formula, recipe catalog and resolver."""

from src.production.calculator import apply_premium_bonus, compute_yield
from src.production.catalog import AliasRule, RecipeCatalog, normalize_key
from src.production.resolver import RecipeResolver, can_produce_premium

__all__ = [
    "compute_yield",
    "apply_premium_bonus",
    "AliasRule",
    "RecipeCatalog",
    "normalize_key",
    "RecipeResolver",
    "can_produce_premium",
]
