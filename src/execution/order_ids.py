"""Client order id sequence: ORD-<epoch millis>-<seq>, unique per generator instance."""

import threading
import time
from typing import Callable, Optional


class OrderIdSequence:
    """Monotonic counter combined with a millisecond timestamp.

    Each TradingOperations owns one, so isolated sessions (and tests) never share a counter.
    """

    def __init__(self, start: int = 1, prefix: str = "ORD", clock: Optional[Callable[[], float]] = None) -> None:
        self._next = start
        self._prefix = prefix
        self._clock = clock or time.time
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            seq = self._next
            self._next += 1
            ts = int(self._clock() * 1000)
        return f"{self._prefix}-{ts}-{seq}"
