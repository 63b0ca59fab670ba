"""Simple in-memory metrics for orders, production cycles and scheduler failures."""

import logging
import threading
from typing import Optional

logger = logging.getLogger(__name__)


class Metrics:
    """In-memory counters; log on demand."""

    def __init__(self):
        self._lock = threading.Lock()
        self._orders_sent = 0
        self._production_cycles = 0
        self._units_produced = 0
        self._scheduler_failures = 0
        self._offers_answered = 0

    def inc_orders_sent(self) -> int:
        with self._lock:
            self._orders_sent += 1
            return self._orders_sent

    @property
    def orders_sent(self) -> int:
        with self._lock:
            return self._orders_sent

    def record_production(self, units: int) -> None:
        with self._lock:
            self._production_cycles += 1
            self._units_produced += units

    @property
    def production_cycles(self) -> int:
        with self._lock:
            return self._production_cycles

    @property
    def units_produced(self) -> int:
        with self._lock:
            return self._units_produced

    def inc_scheduler_failures(self) -> int:
        with self._lock:
            self._scheduler_failures += 1
            return self._scheduler_failures

    @property
    def scheduler_failures(self) -> int:
        with self._lock:
            return self._scheduler_failures

    def inc_offers_answered(self) -> int:
        with self._lock:
            self._offers_answered += 1
            return self._offers_answered

    def log_snapshot(self) -> None:
        """Log current metrics snapshot."""
        with self._lock:
            parts = [
                f"orders_sent={self._orders_sent}",
                f"production_cycles={self._production_cycles}",
                f"units_produced={self._units_produced}",
                f"offers_answered={self._offers_answered}",
            ]
            if self._scheduler_failures:
                parts.append(f"scheduler_failures={self._scheduler_failures}")
        logger.info("metrics " + " ".join(parts))


_global_metrics: Optional[Metrics] = None


def get_metrics() -> Metrics:
    global _global_metrics
    if _global_metrics is None:
        _global_metrics = Metrics()
    return _global_metrics
