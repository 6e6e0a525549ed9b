"""Optional build command run to completion before each (re)start."""

from __future__ import annotations

import subprocess
import threading
import time
from dataclasses import dataclass

from ..exceptions import BuildError


@dataclass(frozen=True)
class BuildResult:
    command: str
    returncode: int
    duration: float


class BuildStep:
    """
    Shell command executed synchronously before the child is spawned.

    The build shares the supervisor's terminal. A running build can be
    cancelled from another thread, e.g. when the session shuts down. A
    cancelled step stays cancelled: later run() calls fail without launching.
    """

    def __init__(self, command: str, cwd: str | None = None) -> None:
        if not command.strip():
            raise ValueError("build command must not be empty")
        self._command = command
        self._cwd = cwd
        self._lock = threading.Lock()
        self._proc: subprocess.Popen | None = None
        self._cancelled = False

    @property
    def command(self) -> str:
        return self._command

    @property
    def cancelled(self) -> bool:
        with self._lock:
            return self._cancelled

    def run(self) -> BuildResult:
        """
        Run the build and wait for it to finish.

        Raises:
            BuildError: If the step was cancelled, or the command cannot be
                launched or exits non-zero
        """
        with self._lock:
            if self._cancelled:
                raise BuildError("build cancelled", command=self._command)

        started = time.monotonic()
        try:
            proc = subprocess.Popen(self._command, shell=True, cwd=self._cwd)
        except OSError as e:
            raise BuildError(
                "failed to launch build command", command=self._command, error=str(e)
            ) from e

        with self._lock:
            self._proc = proc
            cancelled = self._cancelled
        if cancelled:
            # cancel() ran while the command was being launched
            proc.terminate()
        try:
            returncode = proc.wait()
        finally:
            with self._lock:
                self._proc = None

        if cancelled:
            raise BuildError(
                "build cancelled", command=self._command, returncode=returncode
            )
        if returncode != 0:
            raise BuildError(
                "build command failed", command=self._command, returncode=returncode
            )
        return BuildResult(self._command, returncode, time.monotonic() - started)

    def cancel(self) -> bool:
        """
        Cancel the step: terminate an in-flight build and refuse later runs.

        Returns True if a build was running.
        """
        with self._lock:
            self._cancelled = True
            proc = self._proc
        if proc is None or proc.poll() is not None:
            return False
        try:
            proc.terminate()
        except ProcessLookupError:
            return False
        return True

    def __repr__(self) -> str:
        return f"BuildStep({self._command!r})"
