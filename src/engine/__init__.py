"""Account state store and scheduler lifecycle. The scheduler itself lives in src.engine.scheduler."""

from .state import StateStore
from .state_machine import SchedulerState, SchedulerStateMachine

__all__ = [
    "StateStore",
    "SchedulerState",
    "SchedulerStateMachine",
]
