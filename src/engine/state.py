"""In-memory account state: balance, inventory, prices, recipes, authorized products, role."""

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, Mapping, Optional, Set

from src.core.models import AccountState, Product, Recipe, TeamRole

logger = logging.getLogger(__name__)


class StateStore:
    """Thread-safe account mirror updated by connector callbacks, operations and the scheduler.

    Every method runs under one re-entrant lock. Callers that need a check and a
    mutation to be indivisible wrap both in ``transaction()``. Accessors return copies.
    """

    def __init__(self):
        self._lock = threading.RLock()

        self._balance = 0.0
        self._initial_balance = 0.0  # P&L baseline, set at login

        self._inventory: Dict[Product, int] = {}
        self._prices: Dict[Product, float] = {}  # last observed mid
        self._recipes: Dict[Product, Recipe] = {}
        self._authorized: Set[Product] = set()
        self._role: Optional[TeamRole] = None

    @contextmanager
    def transaction(self) -> Iterator["StateStore"]:
        """Hold the store lock across several calls (check-then-act)."""
        with self._lock:
            yield self

    # --- balance ---

    def set_initial_balance(self, value: float) -> None:
        """Session start: baseline and current balance both become value."""
        with self._lock:
            self._initial_balance = float(value)
            self._balance = float(value)

    def initial_balance(self) -> float:
        with self._lock:
            return self._initial_balance

    def set_balance(self, value: float) -> None:
        with self._lock:
            self._balance = float(value)

    def adjust_balance(self, delta: float) -> float:
        with self._lock:
            self._balance += delta
            return self._balance

    def balance(self) -> float:
        with self._lock:
            return self._balance

    # --- inventory ---

    def replace_inventory(self, inventory: Optional[Mapping[Product, Optional[int]]]) -> None:
        """Bulk replace; negative quantities clamp to 0, None keys or values are dropped."""
        with self._lock:
            self._inventory.clear()
            if not inventory:
                return
            for product, qty in inventory.items():
                if product is None or qty is None:
                    continue
                self._inventory[product] = max(0, int(qty))

    def add_inventory(self, product: Optional[Product], qty: int) -> None:
        if product is None:
            return
        with self._lock:
            self._inventory[product] = self._inventory.get(product, 0) + qty

    def subtract_inventory(self, product: Optional[Product], qty: int) -> None:
        """No clamping: the quantity may go negative."""
        if product is None:
            return
        with self._lock:
            self._inventory[product] = self._inventory.get(product, 0) - qty

    def subtract_if_available(self, product: Product, qty: int, held: int = 0) -> Optional[int]:
        """Subtract only when available - held >= qty.

        held is the part of the stock already promised elsewhere (open sell orders).
        Returns None on success, else the free quantity seen.
        """
        with self._lock:
            have = self._inventory.get(product, 0)
            if have - held < qty:
                return have - held
            self._inventory[product] = have - qty
            return None

    def consume_ingredients(self, recipe: Optional[Recipe]) -> None:
        """Subtract every ingredient amount of recipe (no clamping)."""
        if recipe is None:
            return
        with self._lock:
            for product, required in recipe.ingredients.items():
                if product is None or required is None:
                    continue
                self._inventory[product] = self._inventory.get(product, 0) - required

    def available(self, product: Optional[Product]) -> int:
        with self._lock:
            return self._inventory.get(product, 0)

    def inventory(self) -> Dict[Product, int]:
        with self._lock:
            return dict(self._inventory)

    # --- prices ---

    def register_price(self, product: Optional[Product], mid: float) -> None:
        if product is None:
            return
        with self._lock:
            self._prices[product] = float(mid)

    def reference_price(self, product: Optional[Product]) -> float:
        with self._lock:
            return self._prices.get(product, 0.0)

    def prices(self) -> Dict[Product, float]:
        with self._lock:
            return dict(self._prices)

    # --- recipes ---

    def assign_recipe(self, product: Optional[Product], recipe: Optional[Recipe]) -> None:
        if product is None or recipe is None:
            return
        with self._lock:
            self._recipes[product] = recipe.copy()

    def assign_recipes(self, recipes: Optional[Mapping[Product, Recipe]]) -> None:
        """Wholesale replace."""
        with self._lock:
            self._recipes.clear()
            for product, recipe in (recipes or {}).items():
                self.assign_recipe(product, recipe)

    def supplement_recipes(self, recipes: Optional[Mapping[Product, Recipe]]) -> bool:
        """Insert only for products without a recipe. True if anything was inserted."""
        if not recipes:
            return False
        changed = False
        with self._lock:
            for product, recipe in recipes.items():
                if product is None or recipe is None:
                    continue
                if self._recipes.get(product) is None:
                    self._recipes[product] = recipe.copy()
                    changed = True
        return changed

    def recipe_for(self, product: Optional[Product]) -> Optional[Recipe]:
        with self._lock:
            recipe = self._recipes.get(product)
            return recipe.copy() if recipe is not None else None

    def recipes(self) -> Dict[Product, Recipe]:
        with self._lock:
            return {p: r.copy() for p, r in self._recipes.items()}

    # --- authorization / role ---

    def assign_authorized_products(self, products: Optional[Iterable[Product]]) -> None:
        """Wholesale replace."""
        with self._lock:
            self._authorized = {p for p in (products or ()) if p is not None}

    def authorized_products(self) -> Set[Product]:
        with self._lock:
            return set(self._authorized)

    def is_authorized(self, product: Optional[Product]) -> bool:
        with self._lock:
            return product is not None and product in self._authorized

    def assign_role(self, role: Optional[TeamRole]) -> None:
        with self._lock:
            self._role = role

    def role(self) -> Optional[TeamRole]:
        with self._lock:
            return self._role

    # --- valuation ---

    def inventory_value(self) -> float:
        with self._lock:
            return sum(qty * self._prices.get(p, 0.0) for p, qty in self._inventory.items())

    def profit_and_loss(self) -> float:
        """Percent change of net worth (balance + inventory value) against the initial balance."""
        with self._lock:
            if self._initial_balance <= 0.0:
                return 0.0
            worth = self._balance + self.inventory_value()
            return (worth - self._initial_balance) / self._initial_balance * 100.0

    # --- snapshot support ---

    def export_state(self) -> AccountState:
        with self._lock:
            return AccountState(
                balance=self._balance,
                initial_balance=self._initial_balance,
                inventory=dict(self._inventory),
                prices=dict(self._prices),
                recipes={p: r.copy() for p, r in self._recipes.items()},
                authorized_products=frozenset(self._authorized),
                role=self._role,
            )

    def copy_from(self, source: "AccountState | StateStore") -> None:
        """Overwrite every field from source in one critical section; identity is unchanged."""
        if isinstance(source, StateStore):
            source = source.export_state()
        if source is None:
            return
        with self._lock:
            self._balance = float(source.balance)
            self._initial_balance = float(source.initial_balance)
            self._inventory = dict(source.inventory)
            self._prices = dict(source.prices)
            self._recipes = {p: r.copy() for p, r in source.recipes.items()}
            self._authorized = set(source.authorized_products)
            self._role = source.role
        logger.debug(
            "State restored: balance=%.2f products=%d recipes=%d",
            source.balance,
            len(source.inventory),
            len(source.recipes),
        )
