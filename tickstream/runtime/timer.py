# tickstream/runtime/timer.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import logging
import math
import numbers
import threading
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, Hashable, Optional

from tickstream.core.errors import ArgumentError, ArgumentNullError
from tickstream.core.observable import Emitter, Subscription
from tickstream.interfaces.protocols import Scheduler
from tickstream.runtime.scheduler import get_default_scheduler

logger = logging.getLogger(__name__)

_DISPOSED_MESSAGE = "This timer has been disposed and can't be reused."


class TimerState(Enum):
    """
    Observable lifecycle of an ObservableTimer, derived from its count,
    schedule and disposal flag.
    """

    IDLE = auto()  # Nothing ticked yet, not running
    RUNNING = auto()  # A schedule is pending
    STOPPED = auto()  # Ticked at least once, stopped before exhaustion
    COMPLETED = auto()  # Exhausted, or complete() was called
    DISPOSED = auto()  # Terminal


@dataclass(frozen=True)
class TimerInfo:
    """
    Immutable snapshot of a timer's configuration and progress.
    """

    interval: float
    max_count: Optional[int]
    initial_delay: float
    count: int
    state: TimerState
    is_running: bool


def _require_number(name: str, value: Any) -> None:
    """
    :raises ArgumentError: If value is not a real number, is a bool, or is NaN.
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Real) or math.isnan(value):
        raise ArgumentError(name, "Must be a valid number.", {"value": value})


@dataclass(frozen=True)
class _ActiveSchedule:
    """The pending schedule owned by a timer."""

    token: Hashable
    generation: int
    one_shot: bool


class ObservableTimer:
    """
    A timer that pushes zero-based tick ordinals to its subscribers.

    The first tick may use a different delay (initial_delay) than the steady
    interval; the timer then switches to a repeating schedule. Once max_count
    ticks have been emitted the timer stops and notifies completion.

    Example:
        scheduler = ManualScheduler()
        timer = ObservableTimer(100, max_count=3, scheduler=scheduler)
        timer.subscribe(on_next=print, on_completed=lambda: print("done"))
        timer.start()
        scheduler.advance(300)  # prints 0, 1, 2, done
    """

    def __init__(
        self,
        interval: float,
        max_count: Optional[int] = None,
        initial_delay: Optional[float] = None,
        *,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        """
        :param interval: Period between ticks. Zero is allowed.
        :param max_count: Number of ticks before completion. None means unbounded;
                          zero or negative yields a timer that never ticks.
        :param initial_delay: Delay before the first tick. Defaults to interval.
        :param scheduler: Scheduler to run on. Defaults to get_default_scheduler().
        :raises ArgumentNullError: If interval is None.
        :raises ArgumentError: If interval is not a number or is negative, or if
                               max_count or initial_delay is given but is not a number.
        """
        if interval is None:
            raise ArgumentNullError("interval", "Must be a valid number.")
        _require_number("interval", interval)
        if interval < 0:
            raise ArgumentError("interval", "Cannot be negative.", {"value": interval})
        if max_count is not None:
            _require_number("max_count", max_count)
        if initial_delay is not None:
            _require_number("initial_delay", initial_delay)

        self._interval = interval
        self._max_count = max_count
        self._limit = math.inf if max_count is None else max_count
        self._initial_delay = interval if initial_delay is None else initial_delay
        self._scheduler = scheduler if scheduler is not None else get_default_scheduler()

        self._emitter: Emitter[int] = Emitter(name=type(self).__name__)
        self._lock = threading.RLock()
        self._count = 0
        self._active: Optional[_ActiveSchedule] = None
        self._generation = 0
        self._completed = False

    @classmethod
    def start_new(
        cls,
        interval: float,
        max_count: Optional[int] = None,
        initial_delay: Optional[float] = None,
        *,
        scheduler: Optional[Scheduler] = None,
    ) -> "ObservableTimer":
        """
        Construct a timer and start it immediately.
        """
        timer = cls(interval, max_count, initial_delay, scheduler=scheduler)
        timer.start()
        return timer

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def max_count(self) -> Optional[int]:
        return self._max_count

    @property
    def initial_delay(self) -> float:
        return self._initial_delay

    @property
    def count(self) -> int:
        """Number of ticks emitted so far."""
        return self._count

    @property
    def is_running(self) -> bool:
        return self._active is not None

    @property
    def is_disposed(self) -> bool:
        return self._emitter.is_disposed

    @property
    def state(self) -> TimerState:
        with self._lock:
            if self._emitter.is_disposed:
                return TimerState.DISPOSED
            if self._active is not None:
                return TimerState.RUNNING
            if self._completed or self._count >= self._limit:
                return TimerState.COMPLETED
            if self._count == 0:
                return TimerState.IDLE
            return TimerState.STOPPED

    def get_info(self) -> TimerInfo:
        with self._lock:
            return TimerInfo(
                interval=self._interval,
                max_count=self._max_count,
                initial_delay=self._initial_delay,
                count=self._count,
                state=self.state,
                is_running=self._active is not None,
            )

    def subscribe(
        self,
        observer: Any = None,
        *,
        on_next: Optional[Callable[[int], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        on_completed: Optional[Callable[[], None]] = None,
    ) -> Subscription:
        """
        Subscribe to tick ordinals. See Emitter.subscribe.
        """
        return self._emitter.subscribe(observer, on_next=on_next, on_error=on_error, on_completed=on_completed)

    def start(self) -> None:
        """
        Start ticking. Does nothing if already running or if max_count ticks
        have already been emitted.

        :raises ObjectDisposedError: If the timer has been disposed.
        """
        with self._lock:
            self._emitter.assert_not_disposed(_DISPOSED_MESSAGE)
            if self._active is not None or self._count >= self._limit:
                return

            self._generation += 1
            generation = self._generation
            self._completed = False
            if self._count or self._initial_delay == self._interval:
                token = self._scheduler.schedule_repeating(self._interval, self._on_tick, generation, False)
                self._active = _ActiveSchedule(token, generation, one_shot=False)
                logger.debug("Timer started: every %s (count=%d)", self._interval, self._count)
            else:
                token = self._scheduler.schedule_once(self._initial_delay, self._on_tick, generation, True)
                self._active = _ActiveSchedule(token, generation, one_shot=True)
                logger.debug("Timer started: first tick after %s", self._initial_delay)

    def stop(self) -> None:
        """
        Stop ticking. Same as cancel() without the result.
        """
        self.cancel()

    def cancel(self) -> bool:
        """
        Revoke the pending schedule.

        :return: True if the timer was running, False if it was already stopped.
        """
        with self._lock:
            active, self._active = self._active, None
            if active is None:
                return False
            self._scheduler.cancel(active.token)
            logger.debug("Timer cancelled (%s) at count=%d", "one-shot" if active.one_shot else "repeating", self._count)
            return True

    def reset(self) -> None:
        """
        Stop the timer and set the count back to zero. Does not restart.
        """
        with self._lock:
            self.stop()
            self._count = 0
            self._completed = False
            logger.debug("Timer reset")

    def complete(self) -> int:
        """
        Stop the timer and notify completion even if max_count was not reached.

        :return: Number of ticks emitted.
        """
        with self._lock:
            self.cancel()
            self._completed = True
            self._emitter.emit_completed()
            logger.debug("Timer completed by request at count=%d", self._count)
            return self._count

    def dispose(self) -> None:
        """
        Cancel any pending schedule and release all subscribers. Terminal.
        """
        with self._lock:
            if self._emitter.is_disposed:
                return
            self.cancel()
            self._emitter.dispose()
            logger.debug("Timer disposed at count=%d", self._count)

    def _on_tick(self, generation: int, reinitialize: bool) -> None:
        with self._lock:
            # A firing from a schedule revoked while this call waited on the lock.
            if self._active is None or self._active.generation != generation:
                return

            index = self._count
            self._count += 1
            is_complete = self._count >= self._limit

            if reinitialize:
                self.cancel()
                self.start()

            if is_complete:
                self.stop()
                self._completed = True

            try:
                if index < self._limit:
                    self._emitter.emit_next(index)
            finally:
                # Completion is delivered even if an observer raised from on_next.
                if is_complete:
                    logger.debug("Timer reached max_count=%s", self._max_count)
                    self._emitter.emit_completed()

    def __enter__(self) -> "ObservableTimer":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.dispose()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(interval={self._interval!r}, max_count={self._max_count!r}, "
            f"initial_delay={self._initial_delay!r}, count={self._count}, running={self.is_running})"
        )
