"""
Core package: error types and the observable notification mechanism.

Design Patterns:
- Observer Pattern for tick delivery
- Composition: timers own an Emitter rather than inheriting from one
"""

from .errors import ArgumentError, ArgumentNullError, ObjectDisposedError, TimerError
from .observable import Emitter, Subscription

__all__ = [
    "TimerError",
    "ArgumentError",
    "ArgumentNullError",
    "ObjectDisposedError",
    "Emitter",
    "Subscription",
]
