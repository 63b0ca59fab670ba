"""Trading agent error taxonomy.

Business-rule and validation errors are raised before any state mutation, so a
caller that catches one can rely on the store being unchanged.

Codes:
  1xxx: input / authorization
  2xxx: funds / inventory
  3xxx: production
  9xxx: configuration / persistence / connection
"""

from typing import Dict, Iterable, Optional


class TradingError(Exception):
    """Base error for the trading agent."""

    code = 9000

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# --- 1xxx: input / authorization ---

class InputValidationError(TradingError, ValueError):
    code = 1001


class AuthorizationDenied(TradingError):
    code = 1002

    def __init__(self, product: Optional[str], allowed: Iterable[str] = ()) -> None:
        self.product = product
        self.allowed = frozenset(allowed)
        super().__init__(f"Product not authorized: {product or '(empty)'}")


# --- 2xxx: funds / inventory ---

class InsufficientFunds(TradingError):
    code = 2001

    def __init__(self, balance: float, required: float) -> None:
        self.balance = balance
        self.required = required
        super().__init__(
            f"Insufficient funds: balance={balance:.2f}, required={required:.2f}"
        )


class InsufficientInventory(TradingError):
    code = 2002

    def __init__(self, product: Optional[str], available: int, requested: int) -> None:
        self.product = product
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient inventory for {product or 'unknown product'}: "
            f"available={available}, requested={requested}"
        )


# --- 3xxx: production ---

class RecipeNotFound(TradingError):
    code = 3001

    def __init__(self, product: Optional[str]) -> None:
        self.product = product
        super().__init__(f"No recipe for {product or 'unknown product'}")


class IngredientsInsufficient(TradingError):
    code = 3002

    def __init__(self, product: Optional[str], shortfall: Dict[str, int]) -> None:
        self.product = product
        self.shortfall = dict(shortfall)
        missing = ", ".join(f"{k}={v}" for k, v in sorted(self.shortfall.items()))
        super().__init__(f"Insufficient ingredients to produce {product}: missing {missing}")


class RoleUnavailable(TradingError):
    code = 3003

    def __init__(self) -> None:
        super().__init__("Team role not available yet; wait for login confirmation")


# --- 9xxx: configuration / persistence / connection ---

class ConfigurationInvalid(TradingError):
    code = 9001


class SnapshotCorrupt(ConfigurationInvalid):
    code = 9002

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Corrupt snapshot at '{path}': {reason}")


class ConnectionFailed(TradingError):
    code = 9003
