"""
Console wrapper over rich with color auto-detection.

Honors NO_COLOR (https://no-color.org/) and FORCE_COLOR, and renders plain
text when the stream is not a terminal.
"""

from __future__ import annotations

import os
import sys
from typing import Any, TextIO

from rich.console import Console as RichConsole
from rich.theme import Theme

WATCHAPP_THEME = {
    "info": "cyan",
    "warning": "yellow",
    "error": "red bold",
    "success": "green",
    "muted": "dim",
    "title": "bold cyan",
    "highlight": "bold yellow",
}


def should_use_color(stream: TextIO | None = None) -> bool:
    """Determine if color output should be used for ``stream``."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("FORCE_COLOR"):
        return True
    stream = stream if stream is not None else sys.stdout
    return hasattr(stream, "isatty") and stream.isatty()


class Console:
    """
    Themed console for supervisor status lines.

    Example:
        console = Console()
        console.print("[title]watchapp[/title] watching [highlight]src[/highlight]")
        console.print_error("Failed to start process")
    """

    def __init__(
        self,
        *,
        no_color: bool | None = None,
        quiet: bool = False,
        file: TextIO | None = None,
    ) -> None:
        """
        Initialize the console.

        Args:
            no_color: Disable colors (True/False) or auto-detect (None)
            quiet: Suppress non-error output
            file: Output stream (default: sys.stdout)
        """
        self._file = file if file is not None else sys.stdout
        if no_color is None:
            no_color = not should_use_color(self._file)
        self._quiet = quiet
        self._no_color = no_color
        self._rich = RichConsole(
            file=self._file,
            theme=Theme(WATCHAPP_THEME),
            no_color=no_color,
            highlight=False,
            soft_wrap=True,
        )

    @property
    def no_color(self) -> bool:
        return self._no_color

    @property
    def quiet(self) -> bool:
        return self._quiet

    def print(self, *args: Any, **kwargs: Any) -> None:
        """Print with rich markup; suppressed in quiet mode."""
        if self._quiet:
            return
        self._rich.print(*args, **kwargs)

    def print_warning(self, message: str) -> None:
        self.print(f"[warning]{message}[/warning]")

    def print_error(self, message: str) -> None:
        """Print an error message, even in quiet mode."""
        self._rich.print(f"[error]{message}[/error]")

    def rule(self, title: str = "") -> None:
        if self._quiet:
            return
        self._rich.rule(title, style="muted")
