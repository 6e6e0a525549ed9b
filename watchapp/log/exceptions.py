"""Exceptions raised by the logging package."""

from typing import Any

from ..exceptions import WatchappError


class LogError(WatchappError):
    """Base exception for logging-related errors."""


class InvalidLogLevelError(LogError):
    """Raised when an invalid log level is specified."""

    def __init__(self, level: Any) -> None:
        super().__init__(f"Invalid log level: {level}", level=level)
        self.level = level
