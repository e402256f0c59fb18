# tests/conftest.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import threading
from typing import Any, List, Tuple
from unittest.mock import MagicMock

import pytest

from tickstream.runtime.scheduler import ManualScheduler, set_default_scheduler


class RecordingObserver:
    """
    Observer that records every notification in arrival order.

    Example:
        rec = RecordingObserver()
        timer.subscribe(rec)
        assert rec.values == [0, 1, 2]
    """

    def __init__(self) -> None:
        self.events: List[Tuple[str, Any]] = []

    def on_next(self, value: Any) -> None:
        self.events.append(("next", value))

    def on_error(self, error: Exception) -> None:
        self.events.append(("error", error))

    def on_completed(self) -> None:
        self.events.append(("completed", None))

    @property
    def values(self) -> List[Any]:
        return [value for kind, value in self.events if kind == "next"]

    @property
    def completions(self) -> int:
        return sum(1 for kind, _ in self.events if kind == "completed")


@pytest.fixture
def scheduler() -> ManualScheduler:
    """A virtual-time scheduler advanced explicitly by the test."""
    return ManualScheduler()


@pytest.fixture
def recorder() -> RecordingObserver:
    """An observer recording notifications."""
    return RecordingObserver()


@pytest.fixture
def mock_scheduler():
    """A scheduler mock handing out sequential tokens."""
    s = MagicMock()
    s.schedule_once.side_effect = lambda *a: ("once", len(s.schedule_once.call_args_list))
    s.schedule_repeating.side_effect = lambda *a: ("repeat", len(s.schedule_repeating.call_args_list))
    return s


@pytest.fixture
def timer_factory(scheduler):
    """Returns a factory building timers bound to the manual scheduler."""
    from tickstream.runtime.timer import ObservableTimer

    created = []

    def _factory(*args, **kwargs):
        kwargs.setdefault("scheduler", scheduler)
        timer = ObservableTimer(*args, **kwargs)
        created.append(timer)
        return timer

    yield _factory
    for timer in created:
        timer.dispose()


@pytest.fixture(autouse=True)
def restore_default_scheduler():
    yield
    set_default_scheduler(None)


@pytest.fixture(autouse=True)
def cleanup_threads():
    yield
    # Cleanup any remaining non-daemon threads after each test
    for thread in threading.enumerate():
        if thread != threading.current_thread() and thread.is_alive() and not thread.daemon:
            thread.join(timeout=1.0)


@pytest.fixture
def recorder_factory():
    """Returns the RecordingObserver class for tests needing several observers."""
    return RecordingObserver
