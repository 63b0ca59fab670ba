"""Inbound exchange event variants."""

from src.fsm.events import (
    Broadcast,
    BalanceUpdate,
    ConnectionLost,
    ErrorReport,
    EventDelta,
    EventKind,
    Fill,
    GlobalPerformanceReport,
    InboundEvent,
    InventoryUpdate,
    LoginOk,
    OfferReceived,
    OrderAck,
    Ticker,
)

__all__ = [
    "EventKind",
    "InboundEvent",
    "LoginOk",
    "Fill",
    "Ticker",
    "OfferReceived",
    "ErrorReport",
    "OrderAck",
    "InventoryUpdate",
    "BalanceUpdate",
    "EventDelta",
    "Broadcast",
    "ConnectionLost",
    "GlobalPerformanceReport",
]
