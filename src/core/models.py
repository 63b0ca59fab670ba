"""Domain values shared by the store, production, execution and persistence layers."""

import enum
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional

# Products are exchange identifiers, normalized to upper case (e.g. "GUACA", "PALTA_OIL").
Product = str


def normalize_product(name: Optional[str]) -> str:
    """Canonical product key: trimmed, upper-cased, '-' and spaces turned into '_'."""
    if name is None:
        return ""
    return name.strip().upper().replace("-", "_").replace(" ", "_")


class RecipeKind(str, enum.Enum):
    BASIC = "basic"
    PREMIUM = "premium"


class OrderSide(str, enum.Enum):
    BUY = "BUY"
    SELL = "SELL"


class OrderMode(str, enum.Enum):
    MARKET = "MARKET"


@dataclass(frozen=True)
class Recipe:
    """Production rule. Basic recipes have no ingredients; premium_bonus None means 1.0."""

    kind: RecipeKind = RecipeKind.BASIC
    ingredients: Dict[Product, int] = field(default_factory=dict)
    premium_bonus: Optional[float] = None

    @classmethod
    def basic(cls, premium_bonus: Optional[float] = None) -> "Recipe":
        return cls(RecipeKind.BASIC, {}, premium_bonus)

    @classmethod
    def premium(cls, ingredients: Dict[Product, int], premium_bonus: Optional[float] = None) -> "Recipe":
        return cls(RecipeKind.PREMIUM, dict(ingredients), premium_bonus)

    def copy(self) -> "Recipe":
        return Recipe(self.kind, dict(self.ingredients), self.premium_bonus)


@dataclass(frozen=True)
class TeamRole:
    """Per-account parameters for the recursive yield formula. None fields use the documented defaults."""

    branches: Optional[float] = None  # default 1.0
    max_depth: Optional[int] = None  # None -> yield 0
    decay: Optional[float] = None  # default 1.0
    base_energy: Optional[float] = None  # default 0.0
    level_energy: Optional[float] = None  # default 0.0
    budget: Optional[float] = None  # informational


@dataclass(frozen=True)
class Order:
    client_order_id: str
    side: OrderSide
    product: Product
    quantity: int
    message: str = ""
    mode: OrderMode = OrderMode.MARKET


@dataclass(frozen=True)
class Offer:
    """Server-proposed trade; consumed at most once (accept or reject)."""

    offer_id: str
    product: Product
    quantity_requested: Optional[int] = None
    max_price: Optional[float] = None
    buyer: Optional[str] = None


@dataclass(frozen=True)
class AccountState:
    """Detached value of every StateStore field (what snapshots carry)."""

    balance: float = 0.0
    initial_balance: float = 0.0
    inventory: Dict[Product, int] = field(default_factory=dict)
    prices: Dict[Product, float] = field(default_factory=dict)
    recipes: Dict[Product, Recipe] = field(default_factory=dict)
    authorized_products: FrozenSet[Product] = frozenset()
    role: Optional[TeamRole] = None
