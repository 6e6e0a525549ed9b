"""
Exception hierarchy for watchapp.

Every error raised by the supervisor derives from WatchappError, which carries
keyword context (path, command, exit code, ...) so fatal conditions can be
reported without consulting the source.
"""

from typing import Any


class WatchappError(Exception):
    """
    Base exception for all watchapp errors.

    Example:
        try:
            settings = load_settings(cli_overrides)
        except WatchappError as e:
            lg.error(f"cannot start: {e}")
    """

    def __init__(self, message: str, **context: Any) -> None:
        """
        Initialize the exception with a message and optional context.

        Args:
            message: Human-readable error message
            **context: Additional context information (stored in self.context)
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """String representation with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class ConfigError(WatchappError):
    """
    Configuration errors, fatal at startup before any process is spawned.

    Examples:
        - No entry point given and no manifest default
        - Invalid YAML config file
        - Negative grace delay
    """


class SpawnError(WatchappError):
    """
    The child process could not be launched.

    Examples:
        - Entry file missing
        - Interpreter not found on PATH
        - OS refused to execute the program
    """


class BuildError(WatchappError):
    """
    The pre-restart build command failed.

    Non-fatal: the coordinator logs it and spawns the existing entry point.
    """


class UnexpectedExit(WatchappError):
    """The child terminated without being killed by the coordinator."""

    def __init__(self, message: str, returncode: int | None, **context: Any) -> None:
        super().__init__(message, returncode=returncode, **context)
        self.returncode = returncode
