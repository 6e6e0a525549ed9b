"""File system change source feeding the restart coordinator."""

from .source import (
    DEFAULT_DELAY_MS,
    DEFAULT_EXCLUDE,
    ChangeEvent,
    ChangeSource,
    Subscription,
)

__all__ = [
    "DEFAULT_DELAY_MS",
    "DEFAULT_EXCLUDE",
    "ChangeEvent",
    "ChangeSource",
    "Subscription",
]
