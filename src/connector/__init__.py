"""Exchange connector boundary (transport implementations are external)."""

from src.connector.base import EventHandler, ExchangeConnector

__all__ = ["ExchangeConnector", "EventHandler"]
