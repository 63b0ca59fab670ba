"""Trading client session: routes inbound exchange events into the StateStore and owns
operations, auto production, snapshots and the reconnect policy."""

import logging
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Union

from src.config.settings import (
    Configuration,
    get_catalog_config,
    get_reconnect_config,
    get_session_config,
)
from src.connector.base import ExchangeConnector
from src.core.errors import ConnectionFailed
from src.core.logging_utils import log_state_summary
from src.core.metrics import Metrics, get_metrics
from src.core.models import Offer, OrderSide, Product, Recipe, normalize_product
from src.engine.scheduler import AutoProductionScheduler
from src.engine.state import StateStore
from src.execution.operations import TradingOperations
from src.execution.order_ids import OrderIdSequence
from src.fsm.events import (
    BalanceUpdate,
    Broadcast,
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
from src.persistence.snapshot import SnapshotPersistence
from src.production.catalog import RecipeCatalog
from src.production.resolver import RecipeResolver

logger = logging.getLogger(__name__)

DEFAULT_RECONNECT_DELAY_SEC = 3.0


def _product(name: Optional[str]) -> Optional[Product]:
    key = normalize_product(name)
    return key or None


def _products(names: Optional[Iterable[Optional[str]]]) -> set:
    return {p for p in (_product(n) for n in (names or ())) if p is not None}


def _product_map(mapping: Optional[Mapping[Optional[str], Any]]) -> Dict[Optional[Product], Any]:
    return {_product(k): v for k, v in (mapping or {}).items()}


class TradingClient:
    """One exchange session over a single StateStore."""

    def __init__(
        self,
        config: Configuration,
        connector: ExchangeConnector,
        store: Optional[StateStore] = None,
        catalog: Optional[RecipeCatalog] = None,
        persistence: Optional[SnapshotPersistence] = None,
        metrics: Optional[Metrics] = None,
        reconnect_delay_sec: float = DEFAULT_RECONNECT_DELAY_SEC,
        sleep: Callable[[float], None] = time.sleep,
    ):
        # 1. Config
        self.config = config
        self._reconnect_delay_sec = reconnect_delay_sec
        self._sleep = sleep

        # 2. Object References
        self.connector = connector
        self.store = store or StateStore()
        self._metrics = metrics or get_metrics()
        self.resolver = RecipeResolver(self.store, catalog, config.species, config.team)
        self.operations = TradingOperations(
            self.store, connector, self.resolver, OrderIdSequence(), self._metrics
        )
        self.scheduler = AutoProductionScheduler(self.operations, self._metrics)
        self.persistence = persistence or SnapshotPersistence(config.snapshots_dir)

        # 3. Session state
        self._listening = False
        self._reconnect_lock = threading.Lock()
        self._reconnect_thread: Optional[threading.Thread] = None
        self._handlers = self._get_event_handlers()

    @classmethod
    def from_config(
        cls,
        config: Dict[str, Any],
        connector: ExchangeConnector,
        metrics: Optional[Metrics] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> "TradingClient":
        """Build a session from a raw config dict (see read_config): session, reconnect and catalog sections."""
        session = get_session_config(config)
        return cls(
            session,
            connector,
            catalog=RecipeCatalog.from_config(get_catalog_config(config)),
            persistence=SnapshotPersistence(session.snapshots_dir),
            metrics=metrics,
            reconnect_delay_sec=get_reconnect_config(config)["delay_sec"],
            sleep=sleep,
        )

    # --- connection ---

    def connect(self) -> None:
        """Register the event handler and open the session. Raises ConnectionFailed."""
        if not self._listening:
            self.connector.add_listener(self.handle)
            self._listening = True
        self.connector.connect(self.config.host, self.config.api_key)
        logger.info("Connected to exchange %s (team=%s)", self.config.host, self.config.team)

    def resync(self) -> None:
        """Ask the exchange for a fresh login state."""
        self.connector.send_login(self.config.api_key)
        logger.info("Resync requested")

    def _start_reconnect(self, cause: Optional[str]) -> bool:
        """Spawn one delayed reconnect attempt unless one is already in progress."""
        if not self._reconnect_lock.acquire(blocking=False):
            logger.info("Reconnect already in progress; ignoring connection loss (%s)", cause)
            return False
        try:
            self._reconnect_thread = threading.Thread(
                target=self._reconnect_attempt, name="reconnect", daemon=True
            )
            self._reconnect_thread.start()
        except Exception:
            self._reconnect_lock.release()
            raise
        return True

    def _reconnect_attempt(self) -> None:
        try:
            logger.info("Reconnecting in %.0fs", self._reconnect_delay_sec)
            self._sleep(self._reconnect_delay_sec)
            self.connect()
        except ConnectionFailed as e:
            logger.error("Automatic reconnect failed: %s", e)
        except Exception as e:
            logger.exception("Automatic reconnect error: %s", e)
        finally:
            self._reconnect_lock.release()

    def wait_for_reconnect(self, timeout: Optional[float] = None) -> None:
        thread = self._reconnect_thread
        if thread is not None:
            thread.join(timeout)

    # --- inbound events ---

    def _get_event_handlers(self) -> Dict[EventKind, Callable[[Any], None]]:
        """Map event kind -> handler."""
        return {
            EventKind.LOGIN_OK: self._on_login_ok,
            EventKind.FILL: self._on_fill,
            EventKind.TICKER: self._on_ticker,
            EventKind.OFFER: self._on_offer,
            EventKind.ERROR: self._on_error,
            EventKind.ORDER_ACK: self._on_order_ack,
            EventKind.INVENTORY_UPDATE: self._on_inventory_update,
            EventKind.BALANCE_UPDATE: self._on_balance_update,
            EventKind.EVENT_DELTA: self._on_event_delta,
            EventKind.BROADCAST: self._on_broadcast,
            EventKind.CONNECTION_LOST: self._on_connection_lost,
            EventKind.GLOBAL_PERFORMANCE_REPORT: self._on_global_performance_report,
        }

    def handle(self, event: Optional[InboundEvent]) -> None:
        """Single entry point for the connector. Handler errors are logged, never raised."""
        if event is None:
            return
        handler = self._handlers.get(getattr(event, "kind", None))
        if handler is None:
            logger.warning("No handler for event %r", event)
            return
        try:
            handler(event)
        except Exception as e:
            logger.exception("Handler for %s raised: %s", event.kind.value, e)

    def _on_login_ok(self, event: LoginOk) -> None:
        species = event.species if event.species and event.species.strip() else self.config.species
        team = event.team if event.team and event.team.strip() else self.config.team
        recipes: Dict[Optional[Product], Recipe] = _product_map(event.recipes)
        with self.store.transaction() as s:
            s.set_initial_balance(event.balance or 0.0)
            s.replace_inventory(_product_map(event.inventory))
            s.assign_recipes(recipes)
            self.resolver.species = species
            self.resolver.team = team
            self.resolver.supplement_from_catalog()
            authorized = _products(event.authorized_products)
            if not authorized:
                authorized = set(s.recipes())
            s.assign_authorized_products(authorized)
            s.assign_role(event.role)
            self.operations.clear_reservations()
        logger.info(
            "Login ok | team=%s species=%s balance=%.2f authorized=%d",
            team,
            species,
            event.balance or 0.0,
            len(authorized),
        )

    def _on_fill(self, event: Fill) -> None:
        product = _product(event.product)
        quantity = event.quantity or 0
        price = event.price or 0.0
        total = price * quantity
        with self.store.transaction() as s:
            if event.side == OrderSide.BUY:
                s.adjust_balance(-total)
                s.add_inventory(product, quantity)
            elif event.side == OrderSide.SELL:
                s.adjust_balance(total)
                s.subtract_inventory(product, quantity)
                if product is not None:
                    self.operations.release_sell(product, quantity)
            else:
                logger.warning("Fill with unknown side ignored: %r", event)
                return
        logger.info("Fill %s %s x%s @ %.2f", getattr(event.side, "value", event.side), product, quantity, price)

    def _on_ticker(self, event: Ticker) -> None:
        self.store.register_price(_product(event.product), event.mid or 0.0)

    def _on_offer(self, event: OfferReceived) -> None:
        offer = event.offer
        if offer is None or not offer.offer_id:
            return
        offer = Offer(
            offer_id=offer.offer_id,
            product=_product(offer.product) or "",
            quantity_requested=offer.quantity_requested,
            max_price=offer.max_price,
            buyer=offer.buyer,
        )
        self.operations.offers.add(offer)
        logger.info(
            "Offer %s | %s x%s @ %.2f (buyer=%s)",
            offer.offer_id,
            offer.product,
            offer.quantity_requested or 0,
            offer.max_price or 0.0,
            offer.buyer or "-",
        )

    def _on_error(self, event: ErrorReport) -> None:
        logger.error("Exchange error [%s]: %s", event.code, event.reason)

    def _on_order_ack(self, event: OrderAck) -> None:
        logger.info("OrderAck %s - %s", event.client_order_id, event.status)
        self.operations.on_order_status(event.client_order_id, event.status)

    def _on_inventory_update(self, event: InventoryUpdate) -> None:
        self.store.replace_inventory(_product_map(event.inventory))

    def _on_balance_update(self, event: BalanceUpdate) -> None:
        self.store.set_balance(event.balance or 0.0)

    def _on_event_delta(self, event: EventDelta) -> None:
        logger.info("EventDelta: %s", event.type)

    def _on_broadcast(self, event: Broadcast) -> None:
        logger.info("Broadcast: %s", event.message)

    def _on_connection_lost(self, event: ConnectionLost) -> None:
        logger.warning("Connection lost: %s", event.cause or "unknown")
        self._start_reconnect(event.cause)

    def _on_global_performance_report(self, event: GlobalPerformanceReport) -> None:
        logger.info(
            "Global performance: trades=%s volume=%.2f",
            event.total_trades or 0,
            event.total_volume or 0.0,
        )

    # --- session operations ---

    def pending_offers(self) -> Dict[str, Offer]:
        return self.operations.pending_offers()

    def summary(self) -> Dict[str, float]:
        """Balance, inventory value, net worth and P&L percent, read in one critical section."""
        with self.store.transaction() as s:
            balance = s.balance()
            value = s.inventory_value()
            pnl = s.profit_and_loss()
        out = {
            "balance": round(balance, 2),
            "inventory_value": round(value, 2),
            "net_worth": round(balance + value, 2),
            "pnl_pct": round(pnl, 2),
        }
        log_state_summary(out)
        return out

    def save_snapshot(self, destination: Union[str, Path, None] = None) -> Path:
        return self.persistence.save(self.store.export_state(), destination)

    def load_snapshot(self, path: Union[str, Path]) -> None:
        """Restore every field from a snapshot; on any error the store is untouched."""
        state = self.persistence.load(path)
        with self.store.transaction() as s:
            s.copy_from(state)
            self.operations.clear_reservations()

    def close(self) -> None:
        self.scheduler.stop()
        self._metrics.log_snapshot()
