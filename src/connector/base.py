"""Exchange connector boundary. The wire transport lives outside this package."""

from abc import ABC, abstractmethod
from typing import Callable

from src.core.models import Order, Product
from src.fsm.events import InboundEvent

EventHandler = Callable[[InboundEvent], None]


class ExchangeConnector(ABC):
    """Outbound side of the exchange session.

    Implementations deliver inbound events to every registered handler, possibly
    from their own thread, with no ordering guarantee between event kinds.
    connect() raises ConnectionFailed when the session cannot be established.
    """

    @abstractmethod
    def connect(self, host: str, api_key: str) -> None:
        ...

    @abstractmethod
    def add_listener(self, handler: EventHandler) -> None:
        ...

    @abstractmethod
    def send_order(self, order: Order) -> None:
        ...

    @abstractmethod
    def send_production_update(self, product: Product, quantity: int) -> None:
        ...

    @abstractmethod
    def send_offer_response(self, offer_id: str, accept: bool, quantity: int, price: float) -> None:
        ...

    @abstractmethod
    def send_login(self, api_key: str) -> None:
        ...
