"""
watchapp - restart a Python application whenever its source files change.

The package is usable as a library as well as through the ``watchapp`` CLI:

    >>> from watchapp import ChangeSource, EntryPoint, RestartCoordinator
    >>> from watchapp.log import create_root_lg
    >>> lg = create_root_lg("info")
    >>> coordinator = RestartCoordinator(lg, EntryPoint.create("app.py"))
    >>> coordinator.start()
    >>> coordinator.attach(ChangeSource(lg, "."))
    >>> result = coordinator.wait()
"""

from importlib.metadata import PackageNotFoundError, version

# Version is read from package metadata (pyproject.toml)
try:
    __version__ = version("watchapp")
except PackageNotFoundError:
    # Package not installed, use fallback (development mode)
    __version__ = "0.1.0-dev"

from .config import Settings, load_settings
from .core import (
    CloseReason,
    EntryPoint,
    RestartCause,
    RestartCoordinator,
    RestartRequest,
    RunState,
    SessionResult,
    StatusEvent,
    StatusKind,
)
from .exceptions import (
    BuildError,
    ConfigError,
    SpawnError,
    UnexpectedExit,
    WatchappError,
)
from .process import BuildStep, ExitStatus, ProcessHandle
from .watch import ChangeEvent, ChangeSource

__all__ = [
    "__version__",
    # Errors
    "BuildError",
    "ConfigError",
    "SpawnError",
    "UnexpectedExit",
    "WatchappError",
    # Engine
    "CloseReason",
    "EntryPoint",
    "RestartCause",
    "RestartCoordinator",
    "RestartRequest",
    "RunState",
    "SessionResult",
    "StatusEvent",
    "StatusKind",
    # Processes
    "BuildStep",
    "ExitStatus",
    "ProcessHandle",
    # Watching
    "ChangeEvent",
    "ChangeSource",
    # Settings
    "Settings",
    "load_settings",
]
