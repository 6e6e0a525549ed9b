#!/usr/bin/env python3
"""
watchapp - restart a Python application when its files change.

Usage:
    watchapp -e app.py
    watchapp src -e app.py -b "make assets" -d 500
    watchapp . -e server.py -- --port 8000
    watchapp --help
"""

import sys
from collections.abc import Sequence
from pathlib import Path

from rich.markup import escape

from .. import __version__
from ..config import Settings, load_settings, resolve_watch_root
from ..core import EntryPoint, RestartCoordinator, SessionResult
from ..exceptions import ConfigError
from ..log import InvalidLogLevelError, Logger, create_root_lg, derive_lg
from ..process import BuildStep
from ..ui import Console, should_use_color
from ..watch import ChangeSource
from .args import parse_args
from .reporter import SessionReporter
from .shutdown import ShutdownManager

# Poll interval of the main thread; keeps it responsive to signals.
WAIT_SLICE = 0.5
# Upper bound for a signal-triggered shutdown to release the watcher.
SHUTDOWN_JOIN_TIMEOUT = 5.0


def run(
    lg: Logger,
    settings: Settings,
    root: Path,
    project: Path,
    console: Console,
) -> SessionResult:
    """Run one watch session until it closes."""
    entry = EntryPoint.create(
        settings.entry,
        interpreter=settings.interpreter,
        args=settings.args,
        cwd=str(project),
    )
    build = BuildStep(settings.build, cwd=str(project)) if settings.build else None
    coordinator = RestartCoordinator(
        derive_lg(lg, "coordinator"),
        entry,
        build=build,
        grace_ms=settings.grace_ms,
        kill_timeout=settings.kill_timeout,
    )
    reporter = SessionReporter(console, __version__)
    coordinator.add_listener(reporter)
    source = ChangeSource(
        derive_lg(lg, "watch"), root, delay_ms=settings.delay_ms, exclude=settings.exclude
    )

    reporter.banner(settings, root)
    with ShutdownManager(coordinator.shutdown) as manager:
        coordinator.start()
        coordinator.attach(source)
        result = coordinator.wait(WAIT_SLICE)
        while result is None:
            result = coordinator.wait(WAIT_SLICE)
        manager.join(SHUTDOWN_JOIN_TIMEOUT)

    if manager.signal_name is not None:
        lg.debug("stopped by signal", extra={"signal": manager.signal_name})
    reporter.summary(result, settings.entry)
    return result


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for the watchapp CLI."""
    overrides, quiet = parse_args(sys.argv[1:] if argv is None else argv)
    project = Path.cwd()

    console = Console(no_color=True if overrides.get("colors") is False else None, quiet=quiet)

    try:
        settings = load_settings(overrides, project_dir=project)
        root = resolve_watch_root(settings.watch, project_dir=project)
        lg = create_root_lg(
            settings.log_level,
            colors=settings.colors and should_use_color(sys.stderr),
        )
    except (ConfigError, InvalidLogLevelError) as e:
        console.print_error(f"watchapp: {escape(str(e))}")
        return 1

    if not settings.colors:
        console = Console(no_color=True, quiet=quiet)

    return run(lg, settings, root, project, console).exit_code


if __name__ == "__main__":
    sys.exit(main())
