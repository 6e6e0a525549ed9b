"""Constant values shared by the logging package."""

import logging


class LogConstants:
    """Constants for the logging system."""

    DEFAULT_FORMAT: str = "[%(asctime)s] [%(levelname).1s] %(message)s"

    # Column where extra fields start when the message is short
    DEFAULT_RULE_WIDTH: int = 64

    CUSTOM_LEVELS: dict[str, int] = {"TRACE": 5}

    # Populated with custom levels by watchapp.log on import
    LEVEL_NAMES: dict[str, int | bool] = {
        "critical": logging.CRITICAL,
        "error": logging.ERROR,
        "warning": logging.WARNING,
        "info": logging.INFO,
        "debug": logging.DEBUG,
        "false": False,  # Disables logging entirely
    }

    RESET: str = "\x1b[0m"
