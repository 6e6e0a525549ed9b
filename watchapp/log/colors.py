"""ANSI color selection for log levels."""

import logging

from .constants import LogConstants


class ColorManager:
    """Centralized ANSI color code management."""

    RED = "\x1b[31"
    GREEN = "\x1b[32"
    YELLOW = "\x1b[33"
    MAGENTA = "\x1b[35"
    CYAN = "\x1b[36"
    DEFAULT = "\x1b[38"

    RESET = LogConstants.RESET

    COLORS: dict[int, str] = {
        LogConstants.CUSTOM_LEVELS["TRACE"]: "\x1b[38;5;24",
        logging.DEBUG: "\x1b[38;5;32",
        logging.INFO: CYAN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: MAGENTA,
    }

    @staticmethod
    def for_level(level: int) -> str:
        """Return the base color sequence for a level, DEFAULT when unknown."""
        return ColorManager.COLORS.get(level, ColorManager.DEFAULT)

    @staticmethod
    def gray(level: int) -> str:
        """Gray shade 0-23 from the 256-color palette."""
        level = max(0, min(level, 23))
        return f"\x1b[38;5;{232 + level}"

    @staticmethod
    def bold(base_color: str) -> str:
        return f"{base_color};1m"

    @staticmethod
    def plain(base_color: str) -> str:
        return f"{base_color}m"
