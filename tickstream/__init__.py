"""tickstream: observable timer primitive

This package provides a timer that pushes tick ordinals to subscribers, with
a bounded or unbounded tick count, an optional initial delay that differs from
the steady interval, and explicit lifecycle control.

Responsibilities:
    - Tick counting and completion
    - One-shot / repeating schedule selection
    - Cancellation, reset and disposal
    - Push-based subscription

Interactions:
    - Client code through ObservableTimer and Emitter
    - Schedulers for the underlying callback timing (threads, asyncio, virtual time)
    - Logging system for diagnostics

Cross-cutting Concerns:
    Thread Safety:
        - Timer state is guarded by a re-entrant lock
        - Stale firings from revoked schedules are discarded

    Error Handling:
        - Structured error hierarchy rooted at TimerError
        - Errors raised synchronously at the offending call

    Logging:
        - Module-level loggers under the "tickstream" namespace
        - No handlers configured by the library
"""

from tickstream.core.errors import ArgumentError, ArgumentNullError, ObjectDisposedError, TimerError
from tickstream.core.observable import Emitter, Subscription
from tickstream.runtime.scheduler import (
    AsyncioScheduler,
    ManualScheduler,
    ThreadingScheduler,
    get_default_scheduler,
    set_default_scheduler,
)
from tickstream.runtime.timer import ObservableTimer, TimerInfo, TimerState

__version__ = "0.1.0"

__all__ = [
    "ObservableTimer",
    "TimerInfo",
    "TimerState",
    "Emitter",
    "Subscription",
    "ThreadingScheduler",
    "AsyncioScheduler",
    "ManualScheduler",
    "get_default_scheduler",
    "set_default_scheduler",
    "TimerError",
    "ArgumentError",
    "ArgumentNullError",
    "ObjectDisposedError",
]
