"""
In-memory stand-ins for OS processes, build steps and change sources.

The fakes follow the threading behavior of the real classes: a killed
FakeProcess exits on a timer thread, and exit callbacks run outside the
handle's lock, so coordinator tests see the same interleavings as with real
children without paying for process startup.
"""

import itertools
import threading
import time
from collections.abc import Callable, Iterable, Sequence
from watchapp.core import StatusEvent, StatusKind
from watchapp.exceptions import BuildError, SpawnError
from watchapp.process import BuildResult, ExitStatus
from watchapp.watch import ChangeEvent

SIGTERM_RC = -15
SIGKILL_RC = -9


class FakeProcess:
    """Process handle driven by the test instead of the OS."""

    def __init__(
        self,
        spawner: "FakeSpawner",
        pid: int,
        argv: Sequence[str],
        exit_delay: float,
        ignore_term: bool,
    ) -> None:
        self.pid = pid
        self.argv = tuple(argv)
        self.kill_calls: list[bool] = []
        self._spawner = spawner
        self._exit_delay = exit_delay
        self._ignore_term = ignore_term
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._status: ExitStatus | None = None
        self._error: BaseException | None = None
        self._kill_requested = False
        self._exit_callbacks: list[Callable[[ExitStatus], None]] = []
        self._error_callbacks: list[Callable[[BaseException], None]] = []

    @property
    def status(self) -> ExitStatus | None:
        with self._lock:
            return self._status

    def is_alive(self) -> bool:
        return not self._done.is_set()

    def kill(self, force: bool = False) -> None:
        with self._lock:
            self.kill_calls.append(force)
            if self._done.is_set():
                return
            self._kill_requested = True
        if self._ignore_term and not force:
            return
        rc = SIGKILL_RC if force else SIGTERM_RC
        timer = threading.Timer(self._exit_delay, self._finish, kwargs={"returncode": rc})
        timer.daemon = True
        timer.start()

    def exit(self, returncode: int) -> None:
        """Simulate the process exiting on its own."""
        self._finish(returncode=returncode)

    def fail(self, error: BaseException) -> None:
        """Simulate an OS error while waiting for the process."""
        self._finish(error=error)

    def wait(self, timeout: float | None = None) -> ExitStatus | None:
        self._done.wait(timeout)
        return self.status

    def on_exit(self, callback: Callable[[ExitStatus], None]) -> None:
        with self._lock:
            if not self._done.is_set():
                self._exit_callbacks.append(callback)
                return
            status = self._status
        if status is not None:
            callback(status)

    def on_error(self, callback: Callable[[BaseException], None]) -> None:
        with self._lock:
            if not self._done.is_set():
                self._error_callbacks.append(callback)
                return
            error = self._error
        if error is not None:
            callback(error)

    def _finish(
        self, returncode: int | None = None, error: BaseException | None = None
    ) -> None:
        with self._lock:
            if self._done.is_set():
                return
            if error is None and returncode is not None:
                self._status = ExitStatus(returncode, self._kill_requested)
            else:
                self._error = error
            exit_callbacks, self._exit_callbacks = self._exit_callbacks, []
            error_callbacks, self._error_callbacks = self._error_callbacks, []
            self._done.set()
        self._spawner._ended(self)

        if self._status is not None:
            for cb in exit_callbacks:
                cb(self._status)
        elif self._error is not None:
            for ecb in error_callbacks:
                ecb(self._error)


class FakeSpawner:
    """
    Spawner recording every process it creates.

    Args:
        fail_on: 1-based spawn attempts that raise SpawnError
        delay: Seconds each spawn takes
        exit_delay: Seconds between kill() and the process exiting
        ignore_term: Processes ignore non-forced kills
    """

    def __init__(
        self,
        fail_on: Iterable[int] = (),
        delay: float = 0.0,
        exit_delay: float = 0.01,
        ignore_term: bool = False,
    ) -> None:
        self.processes: list[FakeProcess] = []
        self.attempts = 0
        self.max_live = 0
        self.spawn_started = threading.Event()
        self._fail_on = set(fail_on)
        self._delay = delay
        self._exit_delay = exit_delay
        self._ignore_term = ignore_term
        self._live = 0
        self._pids = itertools.count(1000)
        self._cond = threading.Condition()

    @property
    def live(self) -> int:
        with self._cond:
            return self._live

    @property
    def count(self) -> int:
        with self._cond:
            return len(self.processes)

    def __call__(
        self, program: str, args: Sequence[str], cwd: str | None
    ) -> FakeProcess:
        with self._cond:
            self.attempts += 1
            attempt = self.attempts
        self.spawn_started.set()
        if self._delay:
            time.sleep(self._delay)
        if attempt in self._fail_on:
            raise SpawnError("executable not found", program=program)

        with self._cond:
            proc = FakeProcess(
                self, next(self._pids), [program, *args], self._exit_delay, self._ignore_term
            )
            self.processes.append(proc)
            self._live += 1
            self.max_live = max(self.max_live, self._live)
            self._cond.notify_all()
        return proc

    def wait_for_count(self, count: int, timeout: float = 5.0) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: len(self.processes) >= count, timeout)

    def _ended(self, proc: FakeProcess) -> None:
        with self._cond:
            self._live -= 1
            self._cond.notify_all()


class FakeBuild:
    """
    Build step stand-in.

    Args:
        fail: Raise BuildError with this return code from run()
        block: run() blocks until cancel() is called
    """

    command = "make assets"

    def __init__(self, fail: int | None = None, block: bool = False) -> None:
        self.runs = 0
        self.cancelled = threading.Event()
        self.started = threading.Event()
        self._fail = fail
        self._block = block

    def run(self) -> BuildResult:
        self.runs += 1
        self.started.set()
        if self._block:
            self.cancelled.wait(5.0)
            raise BuildError("build command failed", command=self.command, returncode=-15)
        if self._fail is not None:
            raise BuildError(
                "build command failed", command=self.command, returncode=self._fail
            )
        return BuildResult(self.command, 0, 0.0)

    def cancel(self) -> bool:
        self.cancelled.set()
        return True


class FakeSubscription:
    def __init__(self, callback: Callable[[ChangeEvent], None]) -> None:
        self.callback = callback
        self.closed = False

    def close(self) -> None:
        self.closed = True


class FakeSource:
    """Change source whose events are emitted by the test."""

    def __init__(self) -> None:
        self.subscriptions: list[FakeSubscription] = []

    def subscribe(self, callback: Callable[[ChangeEvent], None]) -> FakeSubscription:
        subscription = FakeSubscription(callback)
        self.subscriptions.append(subscription)
        return subscription

    def emit(self, *paths: str) -> None:
        for subscription in self.subscriptions:
            if not subscription.closed:
                subscription.callback(ChangeEvent(tuple(paths)))


class EventRecorder:
    """Status listener collecting events in delivery order."""

    def __init__(self) -> None:
        self.events: list[StatusEvent] = []
        self._cond = threading.Condition()

    def __call__(self, event: StatusEvent) -> None:
        with self._cond:
            self.events.append(event)
            self._cond.notify_all()

    def of_kind(self, kind: StatusKind) -> list[StatusEvent]:
        with self._cond:
            return [e for e in self.events if e.kind is kind]

    def wait_for(self, kind: StatusKind, count: int = 1, timeout: float = 5.0) -> bool:
        with self._cond:
            return self._cond.wait_for(
                lambda: sum(1 for e in self.events if e.kind is kind) >= count, timeout
            )


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    """Poll ``predicate`` until it holds or ``timeout`` elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()
