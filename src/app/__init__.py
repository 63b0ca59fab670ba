"""Trading client session (event routing, operations, auto production, snapshots)."""

from src.app.client import TradingClient

__all__ = ["TradingClient"]
