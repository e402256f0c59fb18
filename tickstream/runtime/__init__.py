"""
Runtime package: schedulers and the observable timer.

Architecture:
- Schedulers own the platform callback primitives
- ObservableTimer owns counting and schedule-mode decisions

Cross-cutting:
- Thread safety
- Debug logging of schedule changes
"""

from .scheduler import (
    AsyncioScheduler,
    ManualScheduler,
    ThreadingScheduler,
    get_default_scheduler,
    set_default_scheduler,
)
from .timer import ObservableTimer, TimerInfo, TimerState

__all__ = [
    "AsyncioScheduler",
    "ManualScheduler",
    "ThreadingScheduler",
    "get_default_scheduler",
    "set_default_scheduler",
    "ObservableTimer",
    "TimerInfo",
    "TimerState",
]
