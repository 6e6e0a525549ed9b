"""Command line interface for watchapp."""

from .cli import main, run

__all__ = ["main", "run"]
