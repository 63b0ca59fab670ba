"""Recipe lookup (store first, then catalog) and premium ingredient check."""

import logging
from typing import Dict, Mapping, Optional, Tuple

from src.core.errors import RecipeNotFound
from src.core.models import Product, Recipe
from src.engine.state import StateStore
from src.production.catalog import RecipeCatalog

logger = logging.getLogger(__name__)


def can_produce_premium(
    recipe: Optional[Recipe], inventory: Mapping[Product, int]
) -> Tuple[bool, Dict[Product, int]]:
    """(True, {}) when every ingredient is covered by inventory, else (False, {ingredient: missing})."""
    if recipe is None:
        return False, {}
    shortfall: Dict[Product, int] = {}
    for product, required in recipe.ingredients.items():
        required = required or 0
        have = inventory.get(product, 0)
        if have < required:
            shortfall[product] = required - have
    return not shortfall, shortfall


class RecipeResolver:
    """Resolves recipes for the session's species/team; catalog hits are written back to the store."""

    def __init__(
        self,
        store: StateStore,
        catalog: Optional[RecipeCatalog] = None,
        species: Optional[str] = None,
        team: Optional[str] = None,
    ):
        self._store = store
        self._catalog = catalog or RecipeCatalog()
        self.species = species
        self.team = team

    def resolve(self, product: Product) -> Recipe:
        recipe = self._store.recipe_for(product)
        if recipe is not None:
            return recipe
        recipe = self._catalog.recipe_for(self.species, self.team, product)
        if recipe is None:
            raise RecipeNotFound(product)
        logger.info("Recipe for %s taken from local catalog (species=%s team=%s)", product, self.species, self.team)
        self._store.assign_recipe(product, recipe)
        return recipe

    def supplement_from_catalog(self) -> bool:
        """Add catalog recipes for products the store has no recipe for."""
        recipes = self._catalog.recipes_for(self.species, self.team)
        changed = self._store.supplement_recipes(recipes)
        if changed:
            logger.info("Recipes supplemented from local catalog for species=%s", self.species)
        return changed

    def known_products(self) -> Dict[Product, Recipe]:
        return self._catalog.recipes_for(self.species, self.team)
