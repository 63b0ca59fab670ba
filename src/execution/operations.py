"""Buy / sell / produce / accept-offer business rules over the StateStore.

Every check runs before any mutation and inside one store transaction with the
mutation it guards. Outbound messages are sent after the transaction is released.
"""

import logging
import threading
from collections import OrderedDict
from typing import Dict, List, Optional, Set, Tuple

from src.connector.base import ExchangeConnector
from src.core.errors import (
    AuthorizationDenied,
    IngredientsInsufficient,
    InputValidationError,
    InsufficientFunds,
    InsufficientInventory,
    RoleUnavailable,
)
from src.core.logging_utils import log_order_status, log_production
from src.core.metrics import Metrics, get_metrics
from src.core.models import Offer, Order, OrderSide, Product, normalize_product
from src.engine.state import StateStore
from src.execution.order_ids import OrderIdSequence
from src.production.calculator import apply_premium_bonus, compute_yield
from src.production.resolver import RecipeResolver, can_produce_premium

logger = logging.getLogger(__name__)

MIN_REFERENCE_PRICE = 1.0

# Order ack statuses that mean the order will never fill.
_DEAD_ORDER_STATUSES = frozenset({"REJECTED", "CANCELLED", "CANCELED", "EXPIRED"})


class OfferBook:
    """Pending offers by id; each offer is consumed at most once."""

    def __init__(self):
        self._lock = threading.Lock()
        self._offers: Dict[str, Offer] = {}

    def add(self, offer: Offer) -> None:
        with self._lock:
            self._offers[offer.offer_id] = offer

    def pop(self, offer_id: str) -> Optional[Offer]:
        with self._lock:
            return self._offers.pop(offer_id, None)

    def snapshot(self) -> Dict[str, Offer]:
        with self._lock:
            return dict(self._offers)

    def __len__(self) -> int:
        with self._lock:
            return len(self._offers)


class TradingOperations:
    """Validates requests against local state and dispatches them to the exchange connector."""

    def __init__(
        self,
        store: StateStore,
        connector: ExchangeConnector,
        resolver: RecipeResolver,
        order_ids: Optional[OrderIdSequence] = None,
        metrics: Optional[Metrics] = None,
    ):
        self._store = store
        self._connector = connector
        self._resolver = resolver
        self._order_ids = order_ids or OrderIdSequence()
        self._metrics = metrics or get_metrics()
        self.offers = OfferBook()
        # Sell orders sent but not yet filled: cl_ord_id -> (product, remaining qty). Guarded by the store lock.
        self._reserved: "OrderedDict[str, Tuple[Product, int]]" = OrderedDict()

    @property
    def store(self) -> StateStore:
        return self._store

    # --- product / quantity validation ---

    def _known_products(self) -> Set[Product]:
        with self._store.transaction() as s:
            known = s.authorized_products()
            known.update(s.recipes())
            known.update(s.inventory())
            known.update(s.prices())
        known.update(self._resolver.known_products())
        return known

    def resolve_product(self, name: Optional[str]) -> Product:
        """Normalize a product name; unknown or empty names raise."""
        if name is None or not name.strip():
            raise InputValidationError("Product name is required")
        product = normalize_product(name)
        if product not in self._known_products():
            raise AuthorizationDenied(name, self._store.authorized_products())
        return product

    def _require_authorized(self, product: Product) -> None:
        if not self._store.is_authorized(product):
            raise AuthorizationDenied(product, self._store.authorized_products())

    @staticmethod
    def _require_positive(quantity: int) -> None:
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
            raise InputValidationError(f"Quantity must be a positive integer, got {quantity!r}")

    # --- reservations (store lock held) ---

    def _reserved_qty(self, product: Product) -> int:
        return sum(qty for p, qty in self._reserved.values() if p == product)

    def sellable(self, product: Product) -> int:
        """Available inventory not already committed to an open sell order."""
        with self._store.transaction() as s:
            return s.available(product) - self._reserved_qty(product)

    def release_sell(self, product: Product, quantity: int) -> None:
        """A SELL fill settled `quantity` units: release the oldest reservations for product."""
        with self._store.transaction():
            remaining = quantity
            for order_id in list(self._reserved):
                if remaining <= 0:
                    break
                p, qty = self._reserved[order_id]
                if p != product:
                    continue
                used = min(qty, remaining)
                remaining -= used
                if qty - used > 0:
                    self._reserved[order_id] = (p, qty - used)
                else:
                    del self._reserved[order_id]

    def clear_reservations(self) -> int:
        """Forget every open sell reservation (the account state was replaced wholesale). Returns how many were dropped."""
        with self._store.transaction():
            dropped = len(self._reserved)
            self._reserved.clear()
        if dropped:
            logger.info("Dropped %d open sell reservation(s)", dropped)
        return dropped

    def on_order_status(self, client_order_id: Optional[str], status: Optional[str]) -> None:
        """Drop the reservation of an order the exchange will not fill."""
        if not client_order_id or (status or "").upper() not in _DEAD_ORDER_STATUSES:
            return
        with self._store.transaction():
            if self._reserved.pop(client_order_id, None) is not None:
                logger.info("Reservation released for %s (status=%s)", client_order_id, status)

    # --- orders ---

    def _build_order(self, side: OrderSide, product: Product, quantity: int, message: Optional[str]) -> Order:
        text = message if message and message.strip() else f"{side.value.lower()} order"
        return Order(self._order_ids.next_id(), side, product, quantity, text)

    def _dispatch(self, order: Order) -> None:
        self._connector.send_order(order)
        self._metrics.inc_orders_sent()
        log_order_status(
            order_status="sent",
            client_order_id=order.client_order_id,
            side=order.side.value,
            product=order.product,
            quantity=order.quantity,
        )

    def buy(self, product_name: str, quantity: int, message: Optional[str] = None) -> Order:
        """Send a market BUY if the balance covers max(reference price, 1.0) * quantity.

        Settlement happens on the fill event; nothing is mutated here.
        """
        product = self.resolve_product(product_name)
        self._require_positive(quantity)
        self._require_authorized(product)
        with self._store.transaction() as s:
            price = max(s.reference_price(product), MIN_REFERENCE_PRICE)
            estimated = price * quantity
            balance = s.balance()
            if balance < estimated:
                raise InsufficientFunds(balance, estimated)
            order = self._build_order(OrderSide.BUY, product, quantity, message)
        self._dispatch(order)
        return order

    def sell(self, product_name: str, quantity: int, message: Optional[str] = None) -> Order:
        """Send a market SELL if unreserved inventory covers quantity; the units stay reserved until filled."""
        product = self.resolve_product(product_name)
        self._require_positive(quantity)
        self._require_authorized(product)
        with self._store.transaction() as s:
            free = s.available(product) - self._reserved_qty(product)
            if free < quantity:
                raise InsufficientInventory(product, free, quantity)
            order = self._build_order(OrderSide.SELL, product, quantity, message)
            self._reserved[order.client_order_id] = (product, quantity)
        try:
            self._dispatch(order)
        except Exception:
            with self._store.transaction():
                self._reserved.pop(order.client_order_id, None)
            raise
        return order

    # --- production ---

    def produce(self, product_name: str, premium: bool = False) -> int:
        """Run one production cycle; returns the units added to inventory."""
        product = self.resolve_product(product_name)
        self._require_authorized(product)
        recipe = self._resolver.resolve(product)
        consumed: Dict[Product, int] = {}
        with self._store.transaction() as s:
            if premium:
                free = {p: s.available(p) - self._reserved_qty(p) for p in recipe.ingredients}
                ok, shortfall = can_produce_premium(recipe, free)
                if not ok:
                    raise IngredientsInsufficient(product, shortfall)
            role = s.role()
            if role is None:
                raise RoleUnavailable()
            if premium:
                s.consume_ingredients(recipe)
                consumed = dict(recipe.ingredients)
            units = compute_yield(role)
            if premium:
                units = apply_premium_bonus(units, recipe)
            s.add_inventory(product, units)
        self._connector.send_production_update(product, units)
        self._metrics.record_production(units)
        log_production(product, units, premium, consumed=consumed)
        return units

    # --- offers ---

    def pending_offers(self) -> Dict[str, Offer]:
        return self.offers.snapshot()

    def accept_offer(self, offer_id: str, accept: bool) -> bool:
        """Answer a pending offer. Returns False (and logs) when the offer is unknown."""
        offer = self.offers.pop(offer_id)
        if offer is None:
            logger.info("Offer %s not found (already answered or never received)", offer_id)
            return False
        requested = offer.quantity_requested or 0
        if accept:
            with self._store.transaction() as s:
                seen = s.subtract_if_available(offer.product, requested, self._reserved_qty(offer.product))
                if seen is not None:
                    raise InsufficientInventory(offer.product, seen, requested)
        price = offer.max_price if offer.max_price is not None else 0.0
        quantity = requested if accept else 0
        self._connector.send_offer_response(offer.offer_id, accept, quantity, price)
        self._metrics.inc_offers_answered()
        log_order_status(
            order_status="offer_accepted" if accept else "offer_rejected",
            product=offer.product,
            quantity=quantity,
            extra={"offer_id": offer.offer_id, "price": price},
        )
        return True

    def open_reservations(self) -> List[Tuple[str, Product, int]]:
        with self._store.transaction():
            return [(oid, p, q) for oid, (p, q) in self._reserved.items()]
