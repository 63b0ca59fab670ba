"""Auto production: produce the target product on a timer and liquidate the output.

One dedicated worker thread per run, cancelled through a threading.Event.
start() and stop() are serialized; both join the previous worker before returning,
so at most one cycle is ever in flight.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Optional

from src.core.errors import InputValidationError, TradingError
from src.core.logging_utils import log_scheduler_transition
from src.core.metrics import Metrics, get_metrics
from src.core.models import Product
from src.engine.state_machine import SchedulerState, SchedulerStateMachine
from src.execution.operations import TradingOperations

logger = logging.getLogger(__name__)

LIQUIDATION_MESSAGE = "auto production"


@dataclass(frozen=True)
class SchedulerStatus:
    running: bool
    product: Optional[Product]
    premium: bool
    interval_seconds: float
    cycles: int = 0
    failures: int = 0
    last_error: Optional[str] = None


class AutoProductionScheduler:
    """Periodic produce-then-sell loop over TradingOperations."""

    MIN_INTERVAL_SEC = 1.0

    def __init__(self, operations: TradingOperations, metrics: Optional[Metrics] = None):
        self._ops = operations
        self._metrics = metrics or get_metrics()
        self._lock = threading.Lock()
        self._fsm = SchedulerStateMachine(on_transition=self._on_transition)
        self._worker: Optional[threading.Thread] = None
        self._cancel: Optional[threading.Event] = None

        self._product: Optional[Product] = None
        self._premium = False
        self._interval = 0.0

        self._stats_lock = threading.Lock()
        self._cycles = 0
        self._failures = 0
        self._last_error: Optional[str] = None

    def _on_transition(self, from_state: SchedulerState, to_state: SchedulerState) -> None:
        log_scheduler_transition(from_state.value, to_state.value, "lifecycle", product=self._product)

    # --- lifecycle ---

    def start(self, product_name: str, premium: bool, interval_seconds: float) -> Product:
        """Cancel any current run and start producing product_name every interval (min 1 s)."""
        if product_name is None or not str(product_name).strip():
            raise InputValidationError("Target product is required")
        if interval_seconds is None or interval_seconds <= 0:
            raise InputValidationError("Interval must be greater than zero seconds")
        product = self._ops.resolve_product(product_name)
        interval = max(self.MIN_INTERVAL_SEC, float(interval_seconds))
        with self._lock:
            self._stop_locked()
            cancel = threading.Event()
            self._product = product
            self._premium = bool(premium)
            self._interval = interval
            self._cancel = cancel
            self._worker = threading.Thread(
                target=self._run,
                args=(product, bool(premium), interval, cancel),
                name="auto-production",
                daemon=True,
            )
            self._fsm.transition(SchedulerState.RUNNING)
            self._worker.start()
        logger.info(
            "Auto production active: %s (%s) every %.0fs",
            product,
            "premium" if premium else "basic",
            interval,
        )
        return product

    def stop(self) -> bool:
        """Stop the current run and wait for an in-flight cycle. False (no-op) when already stopped."""
        with self._lock:
            if not self._fsm.is_running():
                logger.info("Auto production already stopped")
                return False
            self._stop_locked()
        logger.info("Auto production stopped")
        return True

    def _stop_locked(self) -> None:
        if not self._fsm.is_running():
            return
        self._fsm.transition(SchedulerState.STOPPING)
        if self._cancel is not None:
            self._cancel.set()
        worker = self._worker
        if worker is not None and worker is not threading.current_thread():
            worker.join()
        self._worker = None
        self._cancel = None
        self._fsm.transition(SchedulerState.STOPPED)

    def is_running(self) -> bool:
        with self._lock:
            return self._fsm.is_running()

    def status(self) -> SchedulerStatus:
        with self._lock:
            running = self._fsm.is_running()
            product, premium, interval = self._product, self._premium, self._interval
        with self._stats_lock:
            return SchedulerStatus(
                running=running,
                product=product if running else None,
                premium=premium if running else False,
                interval_seconds=interval if running else 0.0,
                cycles=self._cycles,
                failures=self._failures,
                last_error=self._last_error,
            )

    # --- worker ---

    def _run(self, product: Product, premium: bool, interval: float, cancel: threading.Event) -> None:
        while not cancel.is_set():
            self._run_cycle(product, premium, cancel)
            if cancel.wait(interval):
                break

    def _run_cycle(self, product: Product, premium: bool, cancel: threading.Event) -> None:
        """One produce + liquidate cycle. Errors are recorded, never raised."""
        if cancel.is_set():
            return
        try:
            self._ops.produce(product, premium)
            self._liquidate(product)
            with self._stats_lock:
                self._cycles += 1
        except TradingError as e:
            self._record_failure(e)
            logger.warning("Auto production cycle failed for %s: %s", product, e)
        except Exception as e:
            self._record_failure(e)
            logger.exception("Auto production unexpected error for %s: %s", product, e)

    def _liquidate(self, product: Product) -> None:
        quantity = self._ops.sellable(product)
        if quantity <= 0:
            return
        self._ops.sell(product, quantity, LIQUIDATION_MESSAGE)

    def _record_failure(self, error: BaseException) -> None:
        with self._stats_lock:
            self._failures += 1
            self._last_error = str(error)
        self._metrics.inc_scheduler_failures()
