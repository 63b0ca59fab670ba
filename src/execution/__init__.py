"""Order id sequence and trading operations."""

from src.execution.operations import OfferBook, TradingOperations
from src.execution.order_ids import OrderIdSequence

__all__ = ["OfferBook", "OrderIdSequence", "TradingOperations"]
