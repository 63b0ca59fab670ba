"""Auto-production scheduler lifecycle: STOPPED -> RUNNING -> STOPPING -> STOPPED."""

import enum
import logging
from typing import Callable, Dict, FrozenSet, Optional

logger = logging.getLogger(__name__)


class SchedulerState(str, enum.Enum):
    STOPPED = "stopped"
    RUNNING = "running"
    STOPPING = "stopping"


# from_state -> allowed to_states
_TRANSITIONS: Dict[SchedulerState, FrozenSet[SchedulerState]] = {
    SchedulerState.STOPPED: frozenset({SchedulerState.RUNNING}),
    SchedulerState.RUNNING: frozenset({SchedulerState.STOPPING}),
    SchedulerState.STOPPING: frozenset({SchedulerState.STOPPED}),
}

TransitionCallback = Callable[[SchedulerState, SchedulerState], None]


class SchedulerStateMachine:
    """Lifecycle bookkeeping for AutoProductionScheduler. Callers serialize access."""

    def __init__(self, on_transition: Optional[TransitionCallback] = None):
        self._state = SchedulerState.STOPPED
        self._listener = on_transition

    @property
    def current(self) -> SchedulerState:
        return self._state

    def can_transition_to(self, to_state: SchedulerState) -> bool:
        return to_state in _TRANSITIONS[self._state]

    def transition(self, to_state: SchedulerState) -> bool:
        """Move to to_state; an illegal move is logged and refused (returns False)."""
        previous = self._state
        if not self.can_transition_to(to_state):
            logger.warning("Scheduler transition refused: %s -> %s", previous.value, to_state.value)
            return False
        self._state = to_state
        if self._listener is not None:
            try:
                self._listener(previous, to_state)
            except Exception:
                logger.exception("Scheduler transition listener failed (%s -> %s)", previous.value, to_state.value)
        return True

    def is_running(self) -> bool:
        return self._state is SchedulerState.RUNNING
