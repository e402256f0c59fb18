# tickstream/core/observable.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Generic, List, Optional, TypeVar

from tickstream.core.errors import ArgumentError, ObjectDisposedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _CallbackObserver(Generic[T]):
    """
    Internal adapter turning loose callables into an observer object.
    Missing callbacks are treated as no-ops.
    """

    def __init__(
        self,
        on_next: Optional[Callable[[T], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        on_completed: Optional[Callable[[], None]] = None,
    ) -> None:
        self._on_next = on_next
        self._on_error = on_error
        self._on_completed = on_completed

    def on_next(self, value: T) -> None:
        if self._on_next:
            self._on_next(value)

    def on_error(self, error: Exception) -> None:
        if self._on_error:
            self._on_error(error)

    def on_completed(self) -> None:
        if self._on_completed:
            self._on_completed()


class Subscription:
    """
    Handle returned by Emitter.subscribe. Disposing it detaches the observer.
    """

    def __init__(self, emitter: "Emitter", observer: Any) -> None:
        self._emitter: Optional[Emitter] = emitter
        self._observer = observer

    @property
    def observer(self) -> Any:
        """The observer this subscription delivers to."""
        return self._observer

    @property
    def is_disposed(self) -> bool:
        return self._emitter is None

    def dispose(self) -> None:
        """
        Unsubscribe. Safe to call more than once.
        """
        emitter, self._emitter = self._emitter, None
        if emitter is not None:
            emitter._unsubscribe(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.dispose()


class Emitter(Generic[T]):
    """
    Multicast notification source. Observers subscribe and receive every value
    pushed through emit_next until a terminal notification (error or
    completion) releases them, or until the emitter is disposed.
    """

    def __init__(self, name: str = "Emitter") -> None:
        """
        :param name: Name used in disposed-state error messages.
        """
        self._name = name
        self._lock = threading.Lock()
        self._subscriptions: List[Subscription] = []
        self._disposed = False

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def assert_not_disposed(self, message: Optional[str] = None) -> None:
        """
        :raises ObjectDisposedError: If this emitter has been disposed.
        """
        if self._disposed:
            raise ObjectDisposedError(self._name, message)

    def subscribe(
        self,
        observer: Any = None,
        *,
        on_next: Optional[Callable[[T], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        on_completed: Optional[Callable[[], None]] = None,
    ) -> Subscription:
        """
        Register an observer, either as an object with on_next/on_error/on_completed
        methods or as individual callables.

        :return: A Subscription whose dispose() detaches the observer.
        :raises ObjectDisposedError: If the emitter has been disposed.
        :raises ArgumentError: If both an observer and callbacks are given, or neither.
        """
        self.assert_not_disposed()
        has_callbacks = any(cb is not None for cb in (on_next, on_error, on_completed))
        if observer is not None and has_callbacks:
            raise ArgumentError("observer", "Pass either an observer or callbacks, not both.")
        if observer is None:
            if not has_callbacks:
                raise ArgumentError("observer", "An observer or at least one callback is required.")
            observer = _CallbackObserver(on_next, on_error, on_completed)

        subscription = Subscription(self, observer)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def _unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            try:
                self._subscriptions.remove(subscription)
            except ValueError:
                pass

    def _snapshot(self) -> List[Subscription]:
        with self._lock:
            return list(self._subscriptions)

    def _release_all(self) -> List[Subscription]:
        with self._lock:
            released, self._subscriptions = self._subscriptions, []
        for subscription in released:
            subscription._emitter = None
        return released

    def _deliver(self, subscriptions: List[Subscription], channel: str, *args: Any, skip_detached: bool = False) -> None:
        """
        Call ``channel`` on every observer in ``subscriptions``. An observer
        that raises does not stop delivery to the rest; the first exception is
        re-raised once every observer has been called, later ones are logged.
        """
        first_error: Optional[Exception] = None
        for subscription in subscriptions:
            # An earlier observer may have unsubscribed this one.
            if skip_detached and subscription.is_disposed:
                continue
            try:
                getattr(subscription.observer, channel)(*args)
            except Exception as e:
                if first_error is None:
                    first_error = e
                else:
                    logger.exception("%s observer raised from %s", self._name, channel)
        if first_error is not None:
            raise first_error

    def emit_next(self, value: T) -> None:
        """
        Deliver a value to every current observer. Observers added during
        delivery receive from the next emission; observers removed during
        delivery are skipped.
        """
        if self._disposed:
            return
        self._deliver(self._snapshot(), "on_next", value, skip_detached=True)

    def emit_error(self, error: Exception) -> None:
        """
        Deliver a terminal error to every current observer, then release them.
        """
        if self._disposed:
            return
        self._deliver(self._release_all(), "on_error", error)

    def emit_completed(self) -> None:
        """
        Deliver completion to every current observer, then release them.
        An observer therefore sees at most one completion.
        """
        if self._disposed:
            return
        self._deliver(self._release_all(), "on_completed")

    def dispose(self) -> None:
        """
        Release all observers without notifying them and refuse further use.
        """
        if self._disposed:
            return
        self._disposed = True
        released = self._release_all()
        logger.debug("%s disposed, released %d subscriber(s)", self._name, len(released))
