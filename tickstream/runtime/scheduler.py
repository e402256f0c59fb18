# tickstream/runtime/scheduler.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import asyncio
import itertools
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple

from tickstream.interfaces.protocols import Scheduler

logger = logging.getLogger(__name__)

_Callback = Callable[..., Any]


class _TokenSource:
    """
    Internal thread-safe source of unique integer tokens.
    """

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            return next(self._counter)


# -----------------------------------------------------------------------------
# THREADING
# -----------------------------------------------------------------------------
class ThreadingScheduler:
    """
    Scheduler backed by background threads. One-shot schedules use
    threading.Timer; repeating schedules use a worker thread that waits on a
    stop flag between firings. Durations are in seconds.

    Callbacks run on the worker threads. An exception raised by a callback is
    logged and does not end a repeating schedule.
    """

    def __init__(self, daemon: bool = True) -> None:
        """
        :param daemon: Whether worker threads are daemon threads.
        """
        self._daemon = daemon
        self._tokens = _TokenSource()
        self._lock = threading.Lock()
        self._stops: Dict[int, threading.Event] = {}

    @property
    def active_count(self) -> int:
        """Number of schedules that have not fired (one-shot) or been cancelled."""
        with self._lock:
            return len(self._stops)

    def schedule_once(self, delay: float, callback: _Callback, *args: Any) -> int:
        token = self._tokens.next()
        timer = threading.Timer(max(0.0, delay), self._fire_once, args=(token, callback, args))
        timer.daemon = self._daemon
        timer.name = f"tickstream-once-{token}"
        with self._lock:
            # threading.Timer carries its own "finished" event, which cancel() sets.
            self._stops[token] = timer.finished
        logger.debug("Scheduled one-shot %d after %.6fs", token, delay)
        timer.start()
        return token

    def schedule_repeating(self, period: float, callback: _Callback, *args: Any) -> int:
        token = self._tokens.next()
        stop = threading.Event()
        thread = threading.Thread(
            target=self._repeat,
            args=(token, max(0.0, period), stop, callback, args),
            name=f"tickstream-repeat-{token}",
            daemon=self._daemon,
        )
        with self._lock:
            self._stops[token] = stop
        logger.debug("Scheduled repeating %d every %.6fs", token, period)
        thread.start()
        return token

    def cancel(self, token: int) -> None:
        with self._lock:
            stop = self._stops.pop(token, None)
        if stop is not None:
            stop.set()
            logger.debug("Cancelled schedule %d", token)

    def shutdown(self) -> None:
        """
        Cancel every outstanding schedule.
        """
        with self._lock:
            stops, self._stops = self._stops, {}
        for stop in stops.values():
            stop.set()

    def _fire_once(self, token: int, callback: _Callback, args: Tuple[Any, ...]) -> None:
        with self._lock:
            if self._stops.pop(token, None) is None:
                return
        self._invoke(token, callback, args)

    def _repeat(
        self,
        token: int,
        period: float,
        stop: threading.Event,
        callback: _Callback,
        args: Tuple[Any, ...],
    ) -> None:
        next_due = time.monotonic() + period
        while not stop.wait(max(0.0, next_due - time.monotonic())):
            self._invoke(token, callback, args)
            next_due += period

    def _invoke(self, token: int, callback: _Callback, args: Tuple[Any, ...]) -> None:
        try:
            callback(*args)
        except Exception:
            logger.exception("Scheduled callback %d raised", token)


# -----------------------------------------------------------------------------
# ASYNCIO
# -----------------------------------------------------------------------------
@dataclass
class _LoopEntry:
    """Internal record of one AsyncioScheduler schedule."""

    callback: _Callback
    args: Tuple[Any, ...]
    period: Optional[float]
    due: float
    handle: Optional[asyncio.TimerHandle] = field(default=None)


class AsyncioScheduler:
    """
    Scheduler backed by an asyncio event loop (loop.call_at). Durations are in
    seconds of loop time. Callbacks run on the loop thread; exceptions they raise
    go to the loop's exception handler.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """
        :param loop: Loop to schedule on. Defaults to the loop running when the
                     first schedule is made.
        """
        self._loop = loop
        self._tokens = _TokenSource()
        self._entries: Dict[int, _LoopEntry] = {}

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    @property
    def active_count(self) -> int:
        return len(self._entries)

    def schedule_once(self, delay: float, callback: _Callback, *args: Any) -> int:
        return self._add(max(0.0, delay), None, callback, args)

    def schedule_repeating(self, period: float, callback: _Callback, *args: Any) -> int:
        return self._add(max(0.0, period), max(0.0, period), callback, args)

    def cancel(self, token: int) -> None:
        entry = self._entries.pop(token, None)
        if entry is not None and entry.handle is not None:
            entry.handle.cancel()
            logger.debug("Cancelled schedule %d", token)

    def shutdown(self) -> None:
        for token in list(self._entries):
            self.cancel(token)

    def _add(self, delay: float, period: Optional[float], callback: _Callback, args: Tuple[Any, ...]) -> int:
        loop = self.loop
        token = self._tokens.next()
        entry = _LoopEntry(callback, args, period, loop.time() + delay)
        entry.handle = loop.call_at(entry.due, self._fire, token)
        self._entries[token] = entry
        return token

    def _fire(self, token: int) -> None:
        entry = self._entries.get(token)
        if entry is None:
            return
        if entry.period is None:
            del self._entries[token]
        else:
            entry.due += entry.period
            entry.handle = self.loop.call_at(entry.due, self._fire, token)
        entry.callback(*entry.args)


# -----------------------------------------------------------------------------
# MANUAL (VIRTUAL TIME)
# -----------------------------------------------------------------------------
@dataclass
class _ManualEntry:
    """Internal record of one ManualScheduler schedule."""

    due: float
    seq: int
    period: Optional[float]
    callback: _Callback
    args: Tuple[Any, ...]
    last_pass: int = -1


class ManualScheduler:
    """
    Scheduler driven by a virtual clock. Nothing fires until advance() or
    advance_to() moves the clock; due callbacks then run synchronously on the
    caller's thread, in due-time order (ties in scheduling order). Exceptions
    raised by a callback propagate out of advance().

    A repeating schedule with a zero period fires at most once per advance call.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._tokens = _TokenSource()
        self._entries: Dict[int, _ManualEntry] = {}
        self._pass = 0

    @property
    def now(self) -> float:
        return self._now

    @property
    def active_count(self) -> int:
        return len(self._entries)

    def schedule_once(self, delay: float, callback: _Callback, *args: Any) -> int:
        return self._add(max(0.0, delay), None, callback, args)

    def schedule_repeating(self, period: float, callback: _Callback, *args: Any) -> int:
        return self._add(max(0.0, period), max(0.0, period), callback, args)

    def cancel(self, token: int) -> None:
        self._entries.pop(token, None)

    def advance(self, delta: float) -> int:
        """
        Move the clock forward by delta, firing everything that falls due.

        :return: Number of callbacks invoked.
        """
        if delta < 0:
            raise ValueError("Cannot move a ManualScheduler backwards")
        return self.advance_to(self._now + delta)

    def advance_to(self, target: float) -> int:
        """
        Move the clock to an absolute time, firing everything that falls due.

        :return: Number of callbacks invoked.
        """
        if target < self._now:
            raise ValueError("Cannot move a ManualScheduler backwards")
        self._pass += 1
        fired = 0
        while True:
            token = self._next_due(target)
            if token is None:
                break
            entry = self._entries[token]
            self._now = max(self._now, entry.due)
            if entry.period is None:
                del self._entries[token]
            else:
                entry.due += entry.period
                entry.last_pass = self._pass
            fired += 1
            entry.callback(*entry.args)
        self._now = target
        return fired

    def _add(self, delay: float, period: Optional[float], callback: _Callback, args: Tuple[Any, ...]) -> int:
        token = self._tokens.next()
        self._entries[token] = _ManualEntry(self._now + delay, token, period, callback, args)
        return token

    def _next_due(self, target: float) -> Optional[int]:
        best: Optional[int] = None
        best_key: Optional[Tuple[float, int]] = None
        for token, entry in self._entries.items():
            if entry.due > target:
                continue
            if entry.period == 0 and entry.last_pass == self._pass:
                continue
            key = (entry.due, entry.seq)
            if best_key is None or key < best_key:
                best, best_key = token, key
        return best


# -----------------------------------------------------------------------------
# DEFAULT SCHEDULER
# -----------------------------------------------------------------------------
_default_lock = threading.Lock()
_default_scheduler: Optional[Scheduler] = None


def get_default_scheduler() -> Scheduler:
    """
    Return the process-wide scheduler used when a timer is built without one.
    A ThreadingScheduler is created on first use.
    """
    global _default_scheduler
    with _default_lock:
        if _default_scheduler is None:
            _default_scheduler = ThreadingScheduler()
        return _default_scheduler


def set_default_scheduler(scheduler: Optional[Scheduler]) -> None:
    """
    Replace the process-wide scheduler. Passing None restores the lazily
    created ThreadingScheduler.
    """
    global _default_scheduler
    with _default_lock:
        _default_scheduler = scheduler
