"""Inbound exchange events as a tagged union; TradingClient.handle() routes on `kind`."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Optional, Union

from src.core.models import Offer, OrderSide, Product, Recipe, TeamRole


class EventKind(str, Enum):
    LOGIN_OK = "login_ok"
    FILL = "fill"
    TICKER = "ticker"
    OFFER = "offer"
    ERROR = "error"
    ORDER_ACK = "order_ack"
    INVENTORY_UPDATE = "inventory_update"
    BALANCE_UPDATE = "balance_update"
    EVENT_DELTA = "event_delta"
    BROADCAST = "broadcast"
    CONNECTION_LOST = "connection_lost"
    GLOBAL_PERFORMANCE_REPORT = "global_performance_report"


@dataclass(frozen=True)
class LoginOk:
    """Session established: full account state from the exchange."""

    balance: Optional[float] = None
    inventory: Dict[Product, Optional[int]] = field(default_factory=dict)
    recipes: Dict[Product, Recipe] = field(default_factory=dict)
    species: Optional[str] = None
    team: Optional[str] = None
    authorized_products: FrozenSet[Product] = frozenset()
    role: Optional[TeamRole] = None
    kind: EventKind = field(default=EventKind.LOGIN_OK, init=False)


@dataclass(frozen=True)
class Fill:
    side: Optional[OrderSide]
    product: Optional[Product]
    quantity: Optional[int] = None
    price: Optional[float] = None
    kind: EventKind = field(default=EventKind.FILL, init=False)


@dataclass(frozen=True)
class Ticker:
    product: Optional[Product]
    mid: Optional[float] = None
    kind: EventKind = field(default=EventKind.TICKER, init=False)


@dataclass(frozen=True)
class OfferReceived:
    offer: Offer
    kind: EventKind = field(default=EventKind.OFFER, init=False)


@dataclass(frozen=True)
class ErrorReport:
    code: Optional[str] = None
    reason: Optional[str] = None
    kind: EventKind = field(default=EventKind.ERROR, init=False)


@dataclass(frozen=True)
class OrderAck:
    client_order_id: Optional[str] = None
    status: Optional[str] = None
    kind: EventKind = field(default=EventKind.ORDER_ACK, init=False)


@dataclass(frozen=True)
class InventoryUpdate:
    inventory: Dict[Product, Optional[int]] = field(default_factory=dict)
    kind: EventKind = field(default=EventKind.INVENTORY_UPDATE, init=False)


@dataclass(frozen=True)
class BalanceUpdate:
    balance: Optional[float] = None
    kind: EventKind = field(default=EventKind.BALANCE_UPDATE, init=False)


@dataclass(frozen=True)
class EventDelta:
    type: Optional[str] = None
    kind: EventKind = field(default=EventKind.EVENT_DELTA, init=False)


@dataclass(frozen=True)
class Broadcast:
    message: Optional[str] = None
    kind: EventKind = field(default=EventKind.BROADCAST, init=False)


@dataclass(frozen=True)
class ConnectionLost:
    cause: Optional[str] = None
    kind: EventKind = field(default=EventKind.CONNECTION_LOST, init=False)


@dataclass(frozen=True)
class GlobalPerformanceReport:
    total_trades: Optional[int] = None
    total_volume: Optional[float] = None
    kind: EventKind = field(default=EventKind.GLOBAL_PERFORMANCE_REPORT, init=False)


InboundEvent = Union[
    LoginOk,
    Fill,
    Ticker,
    OfferReceived,
    ErrorReport,
    OrderAck,
    InventoryUpdate,
    BalanceUpdate,
    EventDelta,
    Broadcast,
    ConnectionLost,
    GlobalPerformanceReport,
]
