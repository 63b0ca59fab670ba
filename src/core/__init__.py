"""Core domain values, error taxonomy, logging helpers and metrics."""

from src.core.errors import (
    AuthorizationDenied,
    ConfigurationInvalid,
    ConnectionFailed,
    IngredientsInsufficient,
    InputValidationError,
    InsufficientFunds,
    InsufficientInventory,
    RecipeNotFound,
    RoleUnavailable,
    SnapshotCorrupt,
    TradingError,
)
from src.core.models import (
    AccountState,
    Offer,
    Order,
    OrderMode,
    OrderSide,
    Product,
    Recipe,
    RecipeKind,
    TeamRole,
    normalize_product,
)

__all__ = [
    "TradingError",
    "InputValidationError",
    "AuthorizationDenied",
    "InsufficientFunds",
    "InsufficientInventory",
    "RecipeNotFound",
    "IngredientsInsufficient",
    "RoleUnavailable",
    "ConfigurationInvalid",
    "SnapshotCorrupt",
    "ConnectionFailed",
    "AccountState",
    "Offer",
    "Order",
    "OrderMode",
    "OrderSide",
    "Product",
    "Recipe",
    "RecipeKind",
    "TeamRole",
    "normalize_product",
]
