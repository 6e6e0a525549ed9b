"""
Restart coordinator: the state machine owning the supervised child.

Change notifications (watchdog threads), child exits (handle waiter threads)
and shutdown (handed off by the signal handler) arrive concurrently. Every
input is serialized under one condition variable and either advances the
state machine or is coalesced into a single pending restart. A dedicated
supervisor thread performs the slow steps: build, spawn, grace delay and
reaping. Its waits release the lock so events keep arriving, and shutdown
interrupts them.

State flow:
    IDLE -> STARTING -> RUNNING -> STOPPING -> IDLE -> STARTING ...
    any state -> CLOSED (terminal)
"""

from __future__ import annotations

import functools
import threading
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

from ..exceptions import BuildError, SpawnError, UnexpectedExit, WatchappError
from ..process import BuildStep, ExitStatus, ProcessHandle
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

if TYPE_CHECKING:
    from ..log import Logger
    from ..watch import ChangeEvent, ChangeSource, Subscription

Spawner = Callable[[str, Sequence[str], str | None], ProcessHandle]
StatusListener = Callable[[StatusEvent], None]

DEFAULT_GRACE_MS = 100
DEFAULT_KILL_TIMEOUT = 5.0


def _spawn(program: str, args: Sequence[str], cwd: str | None) -> ProcessHandle:
    return ProcessHandle.start(program, args, cwd=cwd)


class RestartCoordinator:
    """
    Supervises one child process, restarting it on request.

    Guarantees:
    - at most one child is alive at any time;
    - restart requests received while starting or stopping are coalesced, and
      the child that ends up running belongs to the latest request;
    - exits caused by our own kill never end the session, any other exit does;
    - shutdown is idempotent and leaves no live child behind.

    Example:
        >>> coordinator = RestartCoordinator(lg, EntryPoint.create("app.py"))
        >>> coordinator.start()
        >>> coordinator.attach(ChangeSource(lg, "."))
        >>> result = coordinator.wait()
        >>> sys.exit(result.exit_code)
    """

    def __init__(
        self,
        lg: Logger,
        entry: EntryPoint,
        build: BuildStep | None = None,
        grace_ms: int = DEFAULT_GRACE_MS,
        kill_timeout: float = DEFAULT_KILL_TIMEOUT,
        spawner: Spawner | None = None,
    ) -> None:
        """
        Initialize the coordinator.

        Args:
            lg: Logger for lifecycle messages
            entry: Command to spawn on every (re)start
            build: Optional build run synchronously before each spawn
            grace_ms: Pause between killing the old child and spawning the new one
            kill_timeout: Seconds to wait for a killed child before SIGKILL
            spawner: Process factory (program, args, cwd); ProcessHandle.start by default
        """
        if grace_ms < 0:
            raise ValueError(f"grace_ms must be >= 0, got {grace_ms}")
        if kill_timeout <= 0:
            raise ValueError(f"kill_timeout must be > 0, got {kill_timeout}")

        self._lg = lg
        self._entry = entry
        self._build = build
        self._grace = grace_ms / 1000.0
        self._kill_timeout = kill_timeout
        self._spawner: Spawner = spawner or _spawn

        self._cond = threading.Condition(threading.RLock())
        self._state = RunState.IDLE
        self._closed = False
        self._seq = 0
        self._pending: RestartRequest | None = None
        self._handle: ProcessHandle | None = None
        self._current_request: RestartRequest | None = None
        self._stopping: ProcessHandle | None = None
        self._orphans: list[ProcessHandle] = []
        self._subscription: Subscription | None = None
        self._attached = False
        self._listeners: list[StatusListener] = []
        self._result: SessionResult | None = None
        self._worker: threading.Thread | None = None
        self._done = threading.Event()

    # -- public API ---------------------------------------------------------

    @property
    def entry(self) -> EntryPoint:
        return self._entry

    @property
    def state(self) -> RunState:
        with self._cond:
            return self._state

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    @property
    def pid(self) -> int | None:
        """Pid of the running child, if any."""
        with self._cond:
            return self._handle.pid if self._handle is not None else None

    @property
    def current_request(self) -> RestartRequest | None:
        """Request that produced the most recently started child."""
        with self._cond:
            return self._current_request

    @property
    def result(self) -> SessionResult | None:
        with self._cond:
            return self._result

    def add_listener(self, listener: StatusListener) -> None:
        """
        Register a status listener.

        Listeners are called with the coordinator's lock held, in transition
        order, and must not block.
        """
        with self._cond:
            self._listeners.append(listener)

    def start(self) -> bool:
        """
        Start the supervisor thread and request the initial launch.

        Returns:
            False if the session was already closed

        Raises:
            RuntimeError: If called more than once
        """
        with self._cond:
            if self._worker is not None:
                raise RuntimeError("coordinator already started")
            if self._closed:
                return False
            self._worker = threading.Thread(
                target=self._supervise, name="watchapp-supervisor", daemon=True
            )
            self._worker.start()
            return self.request_restart(RestartCause.INITIAL)

    def request_restart(
        self, cause: RestartCause = RestartCause.CHANGE, paths: Sequence[str] = ()
    ) -> bool:
        """
        Ask for the child to be (re)started.

        Returns:
            False if the session is closed and the request was dropped
        """
        with self._cond:
            if self._closed:
                self._lg.debug("session closed, ignoring restart request")
                return False

            self._seq += 1
            request = RestartRequest(cause, self._seq, tuple(paths))

            if self._state in (RunState.STARTING, RunState.STOPPING):
                replaced = self._pending
                self._pending = request
                self._lg.debug(
                    "restart coalesced",
                    extra={"state": self._state.value, "seq": request.seq},
                )
                self._emit(
                    StatusKind.RESTART_COALESCED,
                    seq=request.seq,
                    replaced=replaced.seq if replaced is not None else None,
                )
                return True

            self._pending = request
            self._emit(
                StatusKind.RESTART_REQUESTED,
                seq=request.seq,
                cause=cause.value,
                paths=request.paths,
            )
            if self._closed:
                # A listener shut the session down
                return False
            if self._state is RunState.RUNNING:
                self._lg.info(
                    "restarting due to changes...",
                    extra={"cause": cause.value, "paths": list(request.paths)},
                )
                self._begin_stop()
            else:
                self._set_state(RunState.STARTING)
            self._cond.notify_all()
            return True

    def attach(self, source: ChangeSource) -> bool:
        """
        Subscribe to a change source; each event requests one restart.

        The coordinator owns the subscription and closes it on shutdown.
        Subscribing (starting an observer on a large tree) happens outside
        the lock; a session closed meanwhile gets the new subscription closed
        right away.

        Returns:
            False if the session is closed (nothing stays subscribed)
        """
        with self._cond:
            if self._closed:
                self._lg.debug("session closed, not subscribing to changes")
                return False
            if self._attached:
                raise RuntimeError("change source already attached")
            self._attached = True

        subscription = source.subscribe(self._on_change)
        with self._cond:
            if not self._closed:
                self._subscription = subscription
                return True
        self._lg.debug("session closed while subscribing, releasing subscription")
        subscription.close()
        return False

    def shutdown(self) -> bool:
        """
        End the session: kill live children and release the subscription.

        Returns:
            False if the session was already closed
        """
        with self._cond:
            if self._closed:
                self._lg.trace("shutdown already done")
                return False
            self._close(CloseReason.SHUTDOWN, 0)
        self._release_subscription()
        return True

    def wait(self, timeout: float | None = None) -> SessionResult | None:
        """
        Block until the session is closed and every child has been reaped.

        Returns:
            Session result, or None on timeout
        """
        if not self._done.wait(timeout):
            return None
        return self.result

    def wait_settled(self, timeout: float | None = None) -> bool:
        """Block until no start/stop transition is in flight."""

        def settled() -> bool:
            if self._state is RunState.CLOSED:
                return True
            return self._pending is None and self._state in (
                RunState.RUNNING,
                RunState.IDLE,
            )

        with self._cond:
            return self._cond.wait_for(settled, timeout)

    # -- state machine (lock held) -------------------------------------------

    def _set_state(self, new: RunState) -> None:
        old = self._state
        if new not in TRANSITIONS[old]:
            raise RuntimeError(f"invalid transition {old.value} -> {new.value}")
        self._state = new
        self._lg.trace("state changed", extra={"from": old.value, "to": new.value})
        self._emit(StatusKind.STATE_CHANGED, previous=old.value)
        self._cond.notify_all()

    def _emit(self, kind: StatusKind, **detail: Any) -> None:
        event = StatusEvent(kind, self._state, detail)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                self._lg.warning(
                    "status listener failed",
                    extra={"kind": kind.value, "exception": e},
                )

    def _begin_stop(self) -> None:
        handle, self._handle = self._handle, None
        self._stopping = handle
        self._set_state(RunState.STOPPING)
        if handle is not None:
            handle.kill()

    def _close(
        self, reason: CloseReason, exit_code: int, error: WatchappError | None = None
    ) -> None:
        self._closed = True
        self._pending = None
        self._result = SessionResult(reason, exit_code, error)
        self._set_state(RunState.CLOSED)

        for handle in (self._handle, self._stopping):
            if handle is not None:
                handle.kill()
                self._orphans.append(handle)
        self._handle = None
        self._stopping = None
        if self._build is not None:
            self._build.cancel()

        self._lg.info(
            "closing process...", extra={"reason": reason.value, "code": exit_code}
        )
        self._emit(StatusKind.CLOSED, reason=reason.value, exit_code=exit_code)
        if self._worker is None:
            self._done.set()
        self._cond.notify_all()

    def _wait_for_exit(self, handle: ProcessHandle, timeout: float | None) -> bool:
        """Wait until ``handle`` exits or the session closes; True if it exited."""
        self._cond.wait_for(
            lambda: self._closed or not handle.is_alive(), timeout=timeout
        )
        return not handle.is_alive()

    def _finish_stop(self) -> bool:
        """Grace delay, then confirm the old child is gone. False if closed."""
        self._cond.wait_for(lambda: self._closed, timeout=self._grace)
        if self._closed:
            return False

        old = self._stopping
        if old is not None and not self._wait_for_exit(old, self._kill_timeout):
            if self._closed:
                return False
            self._lg.warning(
                "process ignored termination, killing",
                extra={"pid": old.pid, "timeout": self._kill_timeout},
            )
            old.kill(force=True)
            self._wait_for_exit(old, None)
            if self._closed:
                return False

        self._stopping = None
        return True

    # -- supervisor thread ----------------------------------------------------

    def _supervise(self) -> None:
        try:
            while True:
                request = self._next_request()
                if request is None:
                    break
                self._launch(request)
        except Exception as e:
            self._lg.error("supervisor failed", extra={"exception": e})
            with self._cond:
                if not self._closed:
                    self._close(
                        CloseReason.PROCESS_ERROR,
                        1,
                        WatchappError("supervisor failed", error=str(e)),
                    )
            self._release_subscription()
        finally:
            self._reap()
            self._done.set()

    def _next_request(self) -> RestartRequest | None:
        with self._cond:
            while not self._closed:
                if self._state is RunState.STOPPING:
                    if not self._finish_stop():
                        return None
                    self._set_state(RunState.IDLE)
                    self._set_state(RunState.STARTING)
                if self._state is RunState.STARTING and self._pending is not None:
                    request, self._pending = self._pending, None
                    return request
                self._cond.wait()
            return None

    def _launch(self, request: RestartRequest) -> None:
        if self._build is not None:
            self._run_build()

        with self._cond:
            if self._closed:
                return

        self._lg.info(
            f"starting `{self._entry.describe()}`",
            extra={"cause": request.cause.value, "seq": request.seq},
        )
        try:
            self._entry.validate()
            handle = self._spawner(
                self._entry.program, self._entry.arguments, self._entry.cwd
            )
        except SpawnError as e:
            self._spawn_failed(e)
            return
        self._settle(request, handle)

    def _run_build(self) -> None:
        assert self._build is not None
        try:
            result = self._build.run()
        except BuildError as e:
            with self._cond:
                if self._closed:
                    return  # Cancelled by shutdown
                self._lg.warning(
                    "build failed, starting anyway",
                    extra={
                        "command": self._build.command,
                        "returncode": e.context.get("returncode"),
                    },
                )
                self._emit(
                    StatusKind.BUILD_FAILED,
                    command=self._build.command,
                    returncode=e.context.get("returncode"),
                    error=str(e),
                )
            return
        self._lg.debug(
            "build finished",
            extra={"command": result.command, "secs": round(result.duration, 3)},
        )

    def _spawn_failed(self, error: SpawnError) -> None:
        with self._cond:
            if self._closed:
                return
            self._lg.error(
                "failed to start process",
                extra={"cmd": self._entry.describe(), "error": str(error)},
            )
            self._emit(
                StatusKind.SPAWN_FAILED, cmd=self._entry.describe(), error=str(error)
            )
            self._close(CloseReason.SPAWN_FAILED, 1, error)
        self._release_subscription()

    def _settle(self, request: RestartRequest, handle: ProcessHandle) -> None:
        with self._cond:
            if self._closed:
                self._lg.debug(
                    "session closed while starting, stopping new process",
                    extra={"pid": handle.pid},
                )
                handle.kill()
                self._orphans.append(handle)
            else:
                self._handle = handle
                self._current_request = request
                self._set_state(RunState.RUNNING)
                self._emit(
                    StatusKind.PROCESS_STARTED,
                    pid=handle.pid,
                    seq=request.seq,
                    cmd=self._entry.describe(),
                )
                if self._pending is not None:
                    self._lg.debug(
                        "changes arrived while starting, restarting again",
                        extra={"seq": self._pending.seq},
                    )
                    self._begin_stop()

        # Registered outside the lock: an already exited handle calls back
        # immediately on this thread.
        handle.on_exit(functools.partial(self._on_exit, handle))
        handle.on_error(functools.partial(self._on_error, handle))

    def _reap(self) -> None:
        with self._cond:
            orphans, self._orphans = self._orphans, []
        for handle in orphans:
            if handle.wait(self._kill_timeout) is None and handle.is_alive():
                self._lg.warning(
                    "process ignored termination, killing", extra={"pid": handle.pid}
                )
                handle.kill(force=True)
                handle.wait(self._kill_timeout)

    # -- event inputs ----------------------------------------------------------

    def _on_change(self, event: ChangeEvent) -> None:
        self.request_restart(RestartCause.CHANGE, event.paths)

    def _on_exit(self, handle: ProcessHandle, status: ExitStatus) -> None:
        with self._cond:
            self._cond.notify_all()
            if self._closed or handle is not self._handle or status.requested:
                self._lg.debug(
                    "process exited",
                    extra={"pid": handle.pid, "status": status.describe()},
                )
                return

            self._handle = None
            self._emit(
                StatusKind.PROCESS_EXITED,
                pid=handle.pid,
                returncode=status.returncode,
                exit_code=status.exit_code,
            )
            if status.returncode == 0:
                self._lg.info("process finished", extra={"pid": handle.pid})
                self._close(CloseReason.CHILD_FINISHED, 0)
            else:
                error = UnexpectedExit(
                    "process exited unexpectedly",
                    returncode=status.returncode,
                    cmd=self._entry.describe(),
                )
                self._lg.error(
                    f"process has been closed with {status.describe()}",
                    extra={"pid": handle.pid, "cmd": self._entry.describe()},
                )
                self._close(CloseReason.UNEXPECTED_EXIT, status.exit_code or 1, error)
        self._release_subscription()

    def _on_error(self, handle: ProcessHandle, exc: BaseException) -> None:
        with self._cond:
            self._cond.notify_all()
            if self._closed or handle is not self._handle:
                return
            self._handle = None
            error = WatchappError(
                "lost track of process", pid=handle.pid, error=str(exc)
            )
            self._lg.error(str(error), extra={"exception": exc})
            self._close(CloseReason.PROCESS_ERROR, 1, error)
        self._release_subscription()

    def _release_subscription(self) -> None:
        with self._cond:
            if not self._closed:
                return
            subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.close()
            self._lg.debug("change subscription released")
