"""
Immutable logger configuration.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .constants import LogConstants
from .exceptions import InvalidLogLevelError


def resolve_level(level: str | int | bool) -> int | bool:
    """
    Resolve a log level from a name, number or boolean.

    Args:
        level: Level name ("debug", "trace", ...), numeric value, or False to
            disable logging. True maps to INFO.

    Returns:
        Numeric level, or False when logging is disabled

    Raises:
        InvalidLogLevelError: If the name is not a known level
    """
    if isinstance(level, bool):
        return logging.INFO if level else False
    if isinstance(level, int):
        return level

    name = str(level).strip().lower()
    if name.isnumeric():
        return int(name)
    if name in LogConstants.LEVEL_NAMES:
        return LogConstants.LEVEL_NAMES[name]
    raise InvalidLogLevelError(level)


@dataclass(frozen=True)
class LogConfig:
    """
    Configuration shared by a root logger and the loggers derived from it.

    Attributes:
        level: Numeric level, or False to disable logging
        colors: Emit ANSI colors
        micros: Append microseconds to timestamps
    """

    level: int | bool = logging.INFO
    colors: bool = True
    micros: bool = False

    @classmethod
    def from_params(
        cls, level: str | int | bool, colors: bool = True, micros: bool = False
    ) -> LogConfig:
        """Create LogConfig from loosely typed parameters (e.g. CLI values)."""
        return cls(level=resolve_level(level), colors=colors, micros=micros)
