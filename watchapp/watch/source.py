"""
Directory watcher producing debounced change events.

Uses the watchdog library for file system monitoring. Bursts of file system
events (an editor's save-all, a formatter touching many files) are collapsed
with a trailing-edge debounce: each event restarts the timer, and one
ChangeEvent listing every path seen is delivered after ``delay_ms`` of quiet.
"""

from __future__ import annotations

import os
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

if TYPE_CHECKING:
    from ..log import Logger

DEFAULT_DELAY_MS = 200

# Directory-name prefixes whose contents never trigger a restart
DEFAULT_EXCLUDE: tuple[str, ...] = (
    ".git",
    ".hg",
    ".venv",
    "venv",
    "__pycache__",
    ".mypy_cache",
    ".pytest_cache",
    ".ruff_cache",
    ".tox",
    "node_modules",
    "coverage",
    "htmlcov",
)


@dataclass(frozen=True)
class ChangeEvent:
    """One debounced burst of changes; ``paths`` are relative to the root."""

    paths: tuple[str, ...]


ChangeCallback = Callable[[ChangeEvent], None]


class Subscription:
    """
    Active subscription to a ChangeSource.

    Closing stops the observer thread and cancels a pending debounce timer;
    no callback fires after close() returns, except one already running.
    """

    def __init__(
        self,
        lg: Logger,
        root: Path,
        callback: ChangeCallback,
        delay_ms: int,
        exclude: tuple[str, ...],
    ) -> None:
        self._lg = lg
        self._root = root
        self._callback = callback
        self._delay_ms = delay_ms
        self._exclude = exclude
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._changed: set[str] = set()
        self._closed = False
        self._observer: Any = None

    def _start(self) -> None:
        self._observer = Observer()
        self._observer.schedule(_Handler(self), str(self._root), recursive=True)
        self._observer.start()
        self._lg.debug(
            "watching for changes",
            extra={"root": str(self._root), "delay_ms": self._delay_ms},
        )

    @property
    def active(self) -> bool:
        with self._lock:
            return not self._closed

    def is_relevant(self, path: str) -> bool:
        """
        False for paths outside the root or inside an excluded directory.

        Exclusions are directory-name prefixes: ".venv" also covers
        ".venv312". The final component is only excluded when it names an
        excluded directory exactly, so ".gitignore" still counts.
        """
        try:
            rel = Path(path).resolve().relative_to(self._root)
        except ValueError:
            return False
        if not rel.parts:
            return True
        *dirs, name = rel.parts
        if name in self._exclude:
            return False
        return not any(d.startswith(prefix) for d in dirs for prefix in self._exclude)

    def notify(self, paths: Iterable[str]) -> None:
        """
        Record changed paths and (re)arm the debounce timer.

        Called from watchdog's observer thread; public so tests can inject
        changes without touching the file system.
        """
        relevant = [p for p in paths if self.is_relevant(p)]
        if not relevant:
            return

        with self._lock:
            if self._closed:
                return
            for p in relevant:
                self._changed.add(os.path.relpath(Path(p).resolve(), self._root))
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self._delay_ms / 1000.0, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def _fire(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._timer = None
            paths, self._changed = tuple(sorted(self._changed)), set()

        self._lg.debug("change detected", extra={"paths": list(paths)})
        try:
            self._callback(ChangeEvent(paths))
        except Exception as e:
            self._lg.error("change callback failed", extra={"exception": e})

    def close(self) -> None:
        """Stop watching. Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            observer, self._observer = self._observer, None

        if observer is not None:
            observer.stop()
            if observer is not threading.current_thread():
                observer.join(timeout=2.0)
        self._lg.debug("stopped watching", extra={"root": str(self._root)})


class _Handler(FileSystemEventHandler):
    def __init__(self, subscription: Subscription) -> None:
        super().__init__()
        self._subscription = subscription

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type in ("opened", "closed_no_write"):
            return
        if event.is_directory and event.event_type == "modified":
            return
        paths = [os.fsdecode(event.src_path)]
        dest = getattr(event, "dest_path", "")
        if dest:
            paths.append(os.fsdecode(dest))
        self._subscription.notify(paths)


class ChangeSource:
    """
    Watches a directory tree and reports debounced changes.

    Example:
        >>> source = ChangeSource(lg, "src", delay_ms=200)
        >>> subscription = source.subscribe(lambda event: print(event.paths))
        >>> subscription.close()

    Each subscribe() call starts its own observer; the restart coordinator
    subscribes once and closes the subscription when the session ends.
    """

    def __init__(
        self,
        lg: Logger,
        root: str | Path,
        delay_ms: int = DEFAULT_DELAY_MS,
        exclude: Iterable[str] = DEFAULT_EXCLUDE,
    ) -> None:
        """
        Initialize the source.

        Args:
            lg: Logger for watcher diagnostics
            root: Directory to watch recursively
            delay_ms: Quiet period before a burst is delivered
            exclude: Directory-name prefixes to ignore anywhere below the root
        """
        if delay_ms < 0:
            raise ValueError(f"delay_ms must be >= 0, got {delay_ms}")
        self._lg = lg
        self._root = Path(root).resolve()
        self._delay_ms = delay_ms
        self._exclude = tuple(exclude)

    @property
    def root(self) -> Path:
        return self._root

    def subscribe(self, callback: ChangeCallback) -> Subscription:
        """Start watching; ``callback`` receives each debounced ChangeEvent."""
        subscription = Subscription(
            self._lg, self._root, callback, self._delay_ms, self._exclude
        )
        subscription._start()
        return subscription
