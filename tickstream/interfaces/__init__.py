"""
Structural protocols shared between timers, emitters and schedulers.
"""

from .protocols import Disposable, Observable, Observer, Scheduler

__all__ = ["Observer", "Observable", "Disposable", "Scheduler"]
