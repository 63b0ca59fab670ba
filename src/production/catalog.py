"""Fallback recipe catalog keyed by species, loaded from YAML.

The exchange normally sends recipes at login; this catalog fills the gaps.
Species keys are normalized (upper case, no separators). Team names can map to a
canonical species through the alias table in config (catalog.team_aliases /
catalog.species_aliases); no alias is inferred beyond that table.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import yaml

from src.core.models import Product, Recipe, RecipeKind, normalize_product

logger = logging.getLogger(__name__)

_SEPARATORS = (" ", "-", "_")


def normalize_key(value: Optional[str]) -> str:
    """Upper-case and strip separators: 'Mineros-del sebo' -> 'MINEROSDELSEBO'."""
    if value is None:
        return ""
    out = value.strip().upper()
    for sep in _SEPARATORS:
        out = out.replace(sep, "")
    return out


@dataclass(frozen=True)
class AliasRule:
    """Maps a normalized name to a species when it equals `equals` or contains every `contains` part."""

    species: str
    contains: Tuple[str, ...] = ()
    equals: Optional[str] = None

    def matches(self, normalized: str) -> bool:
        if not normalized:
            return False
        if self.equals is not None and normalized == normalize_key(self.equals):
            return True
        if self.contains:
            return all(normalize_key(part) in normalized for part in self.contains)
        return False

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "AliasRule":
        contains = d.get("contains") or ()
        if isinstance(contains, str):
            contains = (contains,)
        return cls(
            species=str(d.get("species") or ""),
            contains=tuple(str(c) for c in contains),
            equals=d.get("equals"),
        )


def _parse_rules(rows: Optional[Sequence[Mapping[str, Any]]]) -> List[AliasRule]:
    return [AliasRule.from_dict(r) for r in (rows or []) if isinstance(r, Mapping)]


def _parse_recipe(entry: Mapping[str, Any]) -> Optional[Tuple[Product, Recipe]]:
    product = normalize_product(entry.get("producto") or entry.get("product"))
    if not product:
        return None
    raw_ingredients = entry.get("ingredientes") or entry.get("ingredients") or {}
    ingredients: Dict[Product, int] = {}
    for name, qty in raw_ingredients.items():
        key = normalize_product(name)
        if key and qty is not None:
            ingredients[key] = int(qty)
    bonus = entry.get("bonusPremium", entry.get("premium_bonus"))
    bonus = float(bonus) if bonus is not None else None
    kind = RecipeKind.PREMIUM if ingredients else RecipeKind.BASIC
    return product, Recipe(kind, ingredients, bonus)


class RecipeCatalog:
    """Species -> {product -> recipe}; recipes_for(species, team) applies the alias table."""

    def __init__(
        self,
        catalog: Optional[Mapping[str, Mapping[Product, Recipe]]] = None,
        team_aliases: Optional[Sequence[AliasRule]] = None,
        species_aliases: Optional[Sequence[AliasRule]] = None,
    ):
        self._catalog: Dict[str, Dict[Product, Recipe]] = {
            normalize_key(k): dict(v) for k, v in (catalog or {}).items()
        }
        self._team_aliases = list(team_aliases or [])
        self._species_aliases = list(species_aliases or [])

    @classmethod
    def from_dict(
        cls,
        raw: Optional[Mapping[str, Any]],
        team_aliases: Optional[Sequence[Mapping[str, Any]]] = None,
        species_aliases: Optional[Sequence[Mapping[str, Any]]] = None,
    ) -> "RecipeCatalog":
        catalog: Dict[str, Dict[Product, Recipe]] = {}
        for species, entries in (raw or {}).items():
            recipes: Dict[Product, Recipe] = {}
            for entry in (entries or {}).values():
                if not isinstance(entry, Mapping):
                    continue
                parsed = _parse_recipe(entry)
                if parsed is not None:
                    recipes[parsed[0]] = parsed[1]
            catalog[str(species)] = recipes
        return cls(catalog, _parse_rules(team_aliases), _parse_rules(species_aliases))

    @classmethod
    def load(
        cls,
        path: Optional[str],
        team_aliases: Optional[Sequence[Mapping[str, Any]]] = None,
        species_aliases: Optional[Sequence[Mapping[str, Any]]] = None,
    ) -> "RecipeCatalog":
        """Load from a YAML (or JSON) file. Missing file -> empty catalog."""
        if not path or not Path(path).exists():
            logger.info("Recipe catalog not found at %s; using empty catalog", path)
            return cls(None, _parse_rules(team_aliases), _parse_rules(species_aliases))
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        catalog = cls.from_dict(raw, team_aliases, species_aliases)
        logger.info("Recipe catalog loaded from %s (%d species)", path, len(catalog.species()))
        return catalog

    @classmethod
    def from_config(cls, catalog_cfg: Mapping[str, Any]) -> "RecipeCatalog":
        return cls.load(
            catalog_cfg.get("path"),
            catalog_cfg.get("team_aliases"),
            catalog_cfg.get("species_aliases"),
        )

    def species(self) -> List[str]:
        return sorted(self._catalog)

    def species_key(self, species: Optional[str], team: Optional[str]) -> str:
        """Catalog key for (species, team): team alias first, then species alias, then species itself."""
        team_key = normalize_key(team)
        for rule in self._team_aliases:
            if rule.matches(team_key):
                return normalize_key(rule.species)
        species_key = normalize_key(species)
        for rule in self._species_aliases:
            if rule.matches(species_key):
                return normalize_key(rule.species)
        return species_key

    def recipes_for(self, species: Optional[str], team: Optional[str]) -> Dict[Product, Recipe]:
        key = self.species_key(species, team)
        if not key:
            return {}
        return {p: r.copy() for p, r in self._catalog.get(key, {}).items()}

    def recipe_for(self, species: Optional[str], team: Optional[str], product: Product) -> Optional[Recipe]:
        return self.recipes_for(species, team).get(product)
