"""
Value types of the restart coordinator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..exceptions import WatchappError


class RunState(Enum):
    """Lifecycle state of the supervised child."""

    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    CLOSED = "closed"


# Allowed transitions; CLOSED is reachable from every state
TRANSITIONS: dict[RunState, frozenset[RunState]] = {
    RunState.IDLE: frozenset({RunState.STARTING, RunState.CLOSED}),
    RunState.STARTING: frozenset({RunState.RUNNING, RunState.CLOSED}),
    RunState.RUNNING: frozenset({RunState.STOPPING, RunState.CLOSED}),
    RunState.STOPPING: frozenset({RunState.IDLE, RunState.CLOSED}),
    RunState.CLOSED: frozenset(),
}


class RestartCause(Enum):
    INITIAL = "initial"
    CHANGE = "change"
    MANUAL = "manual"


@dataclass(frozen=True)
class RestartRequest:
    """A reason to (re)start the child; ``seq`` increases per coordinator."""

    cause: RestartCause
    seq: int
    paths: tuple[str, ...] = ()


class CloseReason(Enum):
    """Why a session ended, and the exit code the host process should use."""

    SHUTDOWN = "shutdown"
    CHILD_FINISHED = "child_finished"
    UNEXPECTED_EXIT = "unexpected_exit"
    SPAWN_FAILED = "spawn_failed"
    PROCESS_ERROR = "process_error"


@dataclass(frozen=True)
class SessionResult:
    reason: CloseReason
    exit_code: int
    error: WatchappError | None = None

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class StatusKind(Enum):
    STATE_CHANGED = "state_changed"
    RESTART_REQUESTED = "restart_requested"
    RESTART_COALESCED = "restart_coalesced"
    BUILD_FAILED = "build_failed"
    PROCESS_STARTED = "process_started"
    PROCESS_EXITED = "process_exited"
    SPAWN_FAILED = "spawn_failed"
    CLOSED = "closed"


@dataclass(frozen=True)
class StatusEvent:
    """Structured status notification; formatting is left to listeners."""

    kind: StatusKind
    state: RunState
    detail: dict[str, Any] = field(default_factory=dict)
