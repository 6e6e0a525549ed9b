"""Restart coordination engine."""

from .coordinator import DEFAULT_GRACE_MS, DEFAULT_KILL_TIMEOUT, RestartCoordinator
from .entry import EntryPoint
from .state import (
    TRANSITIONS,
    CloseReason,
    RestartCause,
    RestartRequest,
    RunState,
    SessionResult,
    StatusEvent,
    StatusKind,
)

__all__ = [
    "TRANSITIONS",
    "DEFAULT_GRACE_MS",
    "DEFAULT_KILL_TIMEOUT",
    "CloseReason",
    "EntryPoint",
    "RestartCause",
    "RestartCoordinator",
    "RestartRequest",
    "RunState",
    "SessionResult",
    "StatusEvent",
    "StatusKind",
]
