"""
Handle owning one OS child process.

The child inherits the supervisor's standard streams so its output is visible
live. A daemon waiter thread observes termination and delivers exactly one
terminal notification (exit or error) to the registered callbacks.
"""

from __future__ import annotations

import os
import shutil
import signal
import subprocess
import threading
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass

from ..exceptions import SpawnError

ExitCallback = Callable[["ExitStatus"], None]
ErrorCallback = Callable[[BaseException], None]


@dataclass(frozen=True)
class ExitStatus:
    """
    Terminal status of a child process.

    Attributes:
        returncode: Popen return code; negative when terminated by a signal
        requested: True when kill() was called before the process exited
    """

    returncode: int
    requested: bool = False

    @property
    def signal(self) -> int | None:
        """Signal number that terminated the process, if any."""
        return -self.returncode if self.returncode < 0 else None

    @property
    def exit_code(self) -> int:
        """Shell-style exit code (128 + signal for signal terminations)."""
        sig = self.signal
        return 128 + sig if sig is not None else self.returncode

    def describe(self) -> str:
        sig = self.signal
        if sig is None:
            return f"code {self.returncode}"
        try:
            return f"signal {signal.Signals(sig).name}"
        except ValueError:
            return f"signal {sig}"


def _resolve_program(program: str) -> str | None:
    """Locate an executable on PATH or as an explicit path."""
    if os.sep in program or (os.altsep and os.altsep in program):
        return program if os.path.isfile(program) else None
    return shutil.which(program)


class ProcessHandle:
    """
    Owns one running child process.

    Use ``ProcessHandle.start()`` to spawn. Every started handle reaches
    exactly one terminal state, reported through ``on_exit`` or ``on_error``.

    Example:
        >>> handle = ProcessHandle.start(sys.executable, ["app.py"])
        >>> handle.on_exit(lambda status: print(status.describe()))
        >>> handle.kill()
    """

    def __init__(self, proc: subprocess.Popen, argv: Sequence[str]) -> None:
        self._proc = proc
        self._argv = tuple(argv)
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._status: ExitStatus | None = None
        self._error: BaseException | None = None
        self._kill_requested = False
        self._exit_callbacks: list[ExitCallback] = []
        self._error_callbacks: list[ErrorCallback] = []
        self._waiter = threading.Thread(
            target=self._wait_loop, name=f"watchapp-wait-{proc.pid}", daemon=True
        )

    @classmethod
    def start(
        cls,
        program: str,
        args: Sequence[str] = (),
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ProcessHandle:
        """
        Spawn a child process without waiting for it.

        Args:
            program: Executable name (looked up on PATH) or path
            args: Arguments passed after the program
            cwd: Working directory for the child
            env: Environment for the child (inherited when None)

        Returns:
            Handle owning the new process

        Raises:
            SpawnError: If the program cannot be located or launched
        """
        resolved = _resolve_program(program)
        if resolved is None:
            raise SpawnError("executable not found", program=program)

        argv = [resolved, *args]
        try:
            proc = subprocess.Popen(argv, cwd=cwd, env=env)
        except OSError as e:
            raise SpawnError(
                "failed to launch process",
                command=" ".join(argv),
                error=e.strerror or str(e),
            ) from e

        handle = cls(proc, argv)
        handle._waiter.start()
        return handle

    @property
    def pid(self) -> int:
        return self._proc.pid

    @property
    def argv(self) -> tuple[str, ...]:
        return self._argv

    @property
    def status(self) -> ExitStatus | None:
        """Exit status once the process has terminated, else None."""
        with self._lock:
            return self._status

    def is_alive(self) -> bool:
        """True until a terminal notification has been recorded."""
        return not self._done.is_set()

    def kill(self, force: bool = False) -> None:
        """
        Ask the process to terminate (SIGTERM, or SIGKILL when ``force``).

        Idempotent: a no-op once the process has exited.
        """
        with self._lock:
            if self._done.is_set():
                return
            self._kill_requested = True
        try:
            if force:
                self._proc.kill()
            else:
                self._proc.terminate()
        except ProcessLookupError:
            pass  # Exited between the check and the signal

    def wait(self, timeout: float | None = None) -> ExitStatus | None:
        """Block until the process terminates; None on timeout or OS error."""
        self._done.wait(timeout)
        return self.status

    def on_exit(self, callback: ExitCallback) -> None:
        """
        Register a one-shot exit notification.

        If the process already exited, the callback runs immediately on the
        calling thread.
        """
        with self._lock:
            if not self._done.is_set():
                self._exit_callbacks.append(callback)
                return
            status = self._status
        if status is not None:
            callback(status)

    def on_error(self, callback: ErrorCallback) -> None:
        """Register a one-shot notification for OS-level wait failures."""
        with self._lock:
            if not self._done.is_set():
                self._error_callbacks.append(callback)
                return
            error = self._error
        if error is not None:
            callback(error)

    def _wait_loop(self) -> None:
        try:
            returncode = self._proc.wait()
        except OSError as e:
            self._finish(error=e)
            return
        self._finish(returncode=returncode)

    def _finish(
        self, returncode: int | None = None, error: BaseException | None = None
    ) -> None:
        with self._lock:
            if error is None and returncode is not None:
                self._status = ExitStatus(returncode, self._kill_requested)
            else:
                self._error = error
            exit_callbacks, self._exit_callbacks = self._exit_callbacks, []
            error_callbacks, self._error_callbacks = self._error_callbacks, []
            self._done.set()

        # Callbacks run outside the lock; they may call back into kill()
        if self._status is not None:
            for cb in exit_callbacks:
                cb(self._status)
        elif self._error is not None:
            for ecb in error_callbacks:
                ecb(self._error)

    def __repr__(self) -> str:
        state = "alive" if self.is_alive() else "exited"
        return f"ProcessHandle(pid={self.pid}, {state})"
