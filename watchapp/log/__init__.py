"""
Structured console logging for watchapp.

Builds on Python's standard logging with:
- ``extra={...}`` fields rendered as ``[key:value]`` pairs
- Colored output per level (disable with colors=False or NO_COLOR)
- A TRACE level below DEBUG
- Derived loggers sharing the root's handlers

Example:
    >>> lg = create_root_lg("debug")
    >>> clg = derive_lg(lg, "coordinator")
    >>> clg.info("starting child", extra={"cmd": "python app.py"})
"""

import logging
from typing import TextIO

from .config import LogConfig, resolve_level
from .constants import LogConstants
from .exceptions import InvalidLogLevelError, LogError
from .factory import LoggerFactory
from .formatters import LogFormatter
from .logger import TRACE, Logger

logging.addLevelName(TRACE, "TRACE")
LogConstants.LEVEL_NAMES["trace"] = TRACE


def create_root_lg(
    level: str | int | bool = "info",
    colors: bool = True,
    micros: bool = False,
    stream: TextIO | None = None,
) -> Logger:
    """
    Create a root logger.

    Args:
        level: Log level name or number, False to disable
        colors: Whether to emit ANSI colors
        micros: Whether to show microsecond precision
        stream: Output stream (stderr by default)

    Raises:
        InvalidLogLevelError: If the level name is unknown
    """
    config = LogConfig.from_params(level, colors=colors, micros=micros)
    return LoggerFactory.create_root(config, stream=stream)


def derive_lg(lg: Logger, tags: str | list[str]) -> Logger:
    """Derive a view logger named after ``tags`` below ``lg``."""
    return LoggerFactory.derive(lg, tags)


__all__ = [
    "Logger",
    "LoggerFactory",
    "LogConfig",
    "LogConstants",
    "LogFormatter",
    "LogError",
    "InvalidLogLevelError",
    "TRACE",
    "resolve_level",
    "create_root_lg",
    "derive_lg",
]
