# tests/unit/core/test_emitter.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import logging
from unittest.mock import MagicMock

import pytest

from tickstream.core.errors import ArgumentError, ObjectDisposedError
from tickstream.core.observable import Emitter, Subscription
from tickstream.interfaces.protocols import Disposable, Observable, Observer


@pytest.fixture
def emitter() -> Emitter:
    return Emitter(name="TestEmitter")


# -----------------------------------------------------------------------------
# SUBSCRIBE
# -----------------------------------------------------------------------------
def test_subscribe_with_observer(emitter, recorder) -> None:
    sub = emitter.subscribe(recorder)
    assert isinstance(sub, Subscription)
    assert sub.observer is recorder
    assert emitter.subscriber_count == 1

    emitter.emit_next(1)
    emitter.emit_next(2)
    assert recorder.values == [1, 2]


def test_subscribe_with_callbacks(emitter) -> None:
    seen = []
    done = MagicMock()
    emitter.subscribe(on_next=seen.append, on_completed=done)

    emitter.emit_next("a")
    emitter.emit_completed()

    assert seen == ["a"]
    done.assert_called_once_with()


def test_subscribe_requires_something(emitter) -> None:
    with pytest.raises(ArgumentError):
        emitter.subscribe()


def test_subscribe_rejects_observer_and_callbacks(emitter, recorder) -> None:
    with pytest.raises(ArgumentError):
        emitter.subscribe(recorder, on_next=print)


def test_partial_callbacks_ignore_missing_channels(emitter) -> None:
    seen = []
    emitter.subscribe(on_next=seen.append)
    emitter.emit_next(1)
    emitter.emit_error(RuntimeError("boom"))
    assert seen == [1]


def test_protocol_conformance(emitter, recorder) -> None:
    assert isinstance(recorder, Observer)
    assert isinstance(emitter, Observable)
    assert isinstance(emitter.subscribe(recorder), Disposable)


# -----------------------------------------------------------------------------
# UNSUBSCRIBE
# -----------------------------------------------------------------------------
def test_subscription_dispose_detaches(emitter, recorder) -> None:
    sub = emitter.subscribe(recorder)
    emitter.emit_next(0)
    sub.dispose()
    assert sub.is_disposed
    emitter.emit_next(1)
    assert recorder.values == [0]
    assert emitter.subscriber_count == 0

    # Idempotent
    sub.dispose()


def test_subscription_context_manager(emitter, recorder) -> None:
    with emitter.subscribe(recorder):
        emitter.emit_next(0)
    emitter.emit_next(1)
    assert recorder.values == [0]


def test_unsubscribe_during_emission_skips_removed_observer(emitter, recorder_factory) -> None:
    first, second = recorder_factory(), recorder_factory()
    subs = {}

    class SelfRemoving:
        def on_next(self, value):
            first.on_next(value)
            subs["second"].dispose()

        def on_error(self, error):
            pass

        def on_completed(self):
            pass

    emitter.subscribe(SelfRemoving())
    subs["second"] = emitter.subscribe(second)

    emitter.emit_next(0)
    emitter.emit_next(1)

    assert first.values == [0, 1]
    assert second.values == []


# -----------------------------------------------------------------------------
# TERMINAL NOTIFICATIONS
# -----------------------------------------------------------------------------
def test_completion_releases_subscribers(emitter, recorder) -> None:
    sub = emitter.subscribe(recorder)
    emitter.emit_completed()
    emitter.emit_completed()
    emitter.emit_next(5)

    assert recorder.completions == 1
    assert recorder.values == []
    assert sub.is_disposed
    assert emitter.subscriber_count == 0


def test_error_is_terminal(emitter, recorder) -> None:
    error = RuntimeError("boom")
    emitter.subscribe(recorder)
    emitter.emit_error(error)
    emitter.emit_completed()
    assert recorder.events == [("error", error)]


def test_subscribe_after_completion_receives_later_values(emitter, recorder) -> None:
    emitter.emit_completed()
    emitter.subscribe(recorder)
    emitter.emit_next(3)
    assert recorder.values == [3]


def test_observer_exception_propagates(emitter) -> None:
    def fail(value):
        raise RuntimeError("observer failed")

    emitter.subscribe(on_next=fail)
    with pytest.raises(RuntimeError, match="observer failed"):
        emitter.emit_next(0)


def test_observer_exception_does_not_stop_delivery(emitter, recorder) -> None:
    emitter.subscribe(
        on_next=MagicMock(side_effect=RuntimeError("first")),
        on_completed=MagicMock(side_effect=RuntimeError("done")),
    )
    emitter.subscribe(recorder)

    with pytest.raises(RuntimeError, match="first"):
        emitter.emit_next(0)
    with pytest.raises(RuntimeError, match="done"):
        emitter.emit_completed()

    assert recorder.events == [("next", 0), ("completed", None)]
    assert emitter.subscriber_count == 0


def test_later_observer_exceptions_are_logged(emitter, caplog) -> None:
    emitter.subscribe(on_next=MagicMock(side_effect=RuntimeError("first")))
    emitter.subscribe(on_next=MagicMock(side_effect=RuntimeError("second")))

    with caplog.at_level(logging.ERROR, logger="tickstream.core.observable"):
        with pytest.raises(RuntimeError, match="first"):
            emitter.emit_next(0)

    assert "TestEmitter observer raised from on_next" in caplog.text
    assert "second" in caplog.text


# -----------------------------------------------------------------------------
# DISPOSAL
# -----------------------------------------------------------------------------
def test_dispose_releases_without_notifying(emitter, recorder) -> None:
    emitter.subscribe(recorder)
    emitter.dispose()
    assert emitter.is_disposed
    assert emitter.subscriber_count == 0

    emitter.emit_next(1)
    emitter.emit_completed()
    assert recorder.events == []


def test_dispose_is_idempotent(emitter) -> None:
    emitter.dispose()
    emitter.dispose()
    assert emitter.is_disposed


def test_subscribe_after_dispose_raises(emitter, recorder) -> None:
    emitter.dispose()
    with pytest.raises(ObjectDisposedError) as exc_info:
        emitter.subscribe(recorder)
    assert exc_info.value.object_name == "TestEmitter"


def test_assert_not_disposed(emitter) -> None:
    emitter.assert_not_disposed("unused")
    emitter.dispose()
    with pytest.raises(ObjectDisposedError, match="custom message"):
        emitter.assert_not_disposed("custom message")
