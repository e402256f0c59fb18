# tickstream/core/errors.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import Any, Dict, Optional


class TimerError(Exception):
    """
    Base exception class for errors raised by tickstream.

    :param message: Human readable description of the failure.
    :param details: Optional dictionary of extra context for logging.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details if details is not None else {}


class ArgumentError(TimerError, ValueError):
    """
    Raised when a constructor or operation receives an unusable argument.
    """

    def __init__(self, param_name: str, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        merged = {"param_name": param_name}
        merged.update(details or {})
        super().__init__(f"{param_name}: {message}", merged)
        self.param_name = param_name


class ArgumentNullError(ArgumentError):
    """
    Raised when a required argument is missing (None).
    """


class ObjectDisposedError(TimerError, RuntimeError):
    """
    Raised when an operation is attempted on an object that has already been disposed.
    """

    def __init__(self, object_name: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"{object_name} has been disposed.", {"object_name": object_name})
        self.object_name = object_name
