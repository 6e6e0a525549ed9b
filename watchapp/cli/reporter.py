"""
User-facing session output: startup banner and closing summary.

Lifecycle details (starts, restarts, build failures) go through the logger;
the reporter adds the framing a user reads first and last.
"""

from __future__ import annotations

from pathlib import Path

from rich.markup import escape

from ..config import Settings
from ..core import CloseReason, SessionResult, StatusEvent, StatusKind
from ..ui import Console

TITLE = escape("[watchapp]")


class SessionReporter:
    """
    Status listener that tallies the session and renders banner and summary.

    Register with ``coordinator.add_listener(reporter)``.
    """

    def __init__(self, console: Console, version: str) -> None:
        self._console = console
        self._version = version
        self._starts = 0
        self._build_failures = 0
        self._last_error: str | None = None

    @property
    def restarts(self) -> int:
        return max(0, self._starts - 1)

    @property
    def build_failures(self) -> int:
        return self._build_failures

    def __call__(self, event: StatusEvent) -> None:
        if event.kind is StatusKind.PROCESS_STARTED:
            self._starts += 1
        elif event.kind is StatusKind.BUILD_FAILED:
            self._build_failures += 1
        elif event.kind is StatusKind.SPAWN_FAILED:
            self._last_error = event.detail.get("error")

    def banner(self, settings: Settings, root: Path) -> None:
        self._console.print(f"\n[title]{TITLE}[/title] [success]{self._version}[/success]")
        self._console.print(
            f"[title]{TITLE}[/title] watching: [highlight]{escape(str(root))}[/highlight]"
        )
        if settings.build:
            self._console.print(
                f"[title]{TITLE}[/title] build: [highlight]{escape(settings.build)}[/highlight]"
            )

    def summary(self, result: SessionResult, entry: str) -> None:
        """Render why the session ended, with enough context to act on it."""
        reason = result.reason
        if reason is CloseReason.SPAWN_FAILED:
            self._console.print_warning(
                f"Failed to start process on file {escape(entry)}"
            )
            self._console.print_error(escape(str(result.error or self._last_error)))
        elif reason is CloseReason.UNEXPECTED_EXIT:
            self._console.print_error(
                f"{TITLE} process has been closed with code '{result.exit_code}'"
            )
        elif reason is CloseReason.PROCESS_ERROR:
            self._console.print_error(f"{TITLE} {escape(str(result.error))}")
        elif reason is CloseReason.CHILD_FINISHED:
            self._console.print(f"[title]{TITLE}[/title] [success]process finished[/success]")
        else:
            self._console.print(f"[title]{TITLE}[/title] closing process...")

        if self._starts:
            self._console.print(
                f"[muted]{self.restarts} restart(s), {self._build_failures} failed build(s)[/muted]"
            )
