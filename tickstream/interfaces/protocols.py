# tickstream/interfaces/protocols.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
from typing import Any, Callable, Hashable, Protocol, TypeVar, runtime_checkable

T_contra = TypeVar("T_contra", contravariant=True)


@runtime_checkable
class Observer(Protocol[T_contra]):
    """
    Observer protocol for receiving pushed notifications.

    Methods:
        on_next(value): Called once per emitted value.
        on_error(error): Called at most once; terminal.
        on_completed(): Called at most once; terminal.

    Runtime Invariants:
    - No on_next call follows on_error or on_completed for the same subscription.
    - At most one of on_error / on_completed is delivered.
    """

    def on_next(self, value: T_contra) -> None: ...

    def on_error(self, error: Exception) -> None: ...

    def on_completed(self) -> None: ...


@runtime_checkable
class Disposable(Protocol):
    """
    Protocol for objects that hold a resource until disposed.

    Runtime Invariants:
    - dispose() is idempotent.
    """

    def dispose(self) -> None: ...


@runtime_checkable
class Observable(Protocol):
    """
    Protocol for push-based sources that observers can subscribe to.
    """

    def subscribe(self, observer: Any = None, **callbacks: Any) -> Disposable: ...


@runtime_checkable
class Scheduler(Protocol):
    """
    Scheduler protocol for platform callback primitives.

    Methods:
        schedule_once(delay, callback, *args): Invoke callback(*args) once after delay.
        schedule_repeating(period, callback, *args): Invoke callback(*args) every period.
        cancel(token): Revoke a pending schedule.

    Runtime Invariants:
    - Tokens are opaque and only meaningful to the scheduler that issued them.
    - Once cancel(token) returns, no invocation for that token is dispatched after
      the scheduler observes the cancellation. On threaded schedulers an invocation
      already dispatched on another thread may still run once, so callers that need
      cancellation to be immediate must drop such late firings themselves.

    Error Handling:
    - cancel() on an unknown or already cancelled token is a no-op.
    """

    def schedule_once(self, delay: float, callback: Callable[..., Any], *args: Any) -> Hashable:
        """Schedule a single invocation after ``delay``."""
        ...

    def schedule_repeating(self, period: float, callback: Callable[..., Any], *args: Any) -> Hashable:
        """Schedule an invocation every ``period`` until cancelled."""
        ...

    def cancel(self, token: Hashable) -> None:
        """Revoke the schedule identified by ``token``."""
        ...
