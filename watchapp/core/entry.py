"""The command the coordinator spawns and supervises."""

from __future__ import annotations

import os
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field

from ..exceptions import SpawnError


@dataclass(frozen=True)
class EntryPoint:
    """
    Script run by an interpreter, plus pass-through arguments.

    Example:
        >>> entry = EntryPoint("app.py", interpreter="python", args=("--port", "8000"))
        >>> entry.describe()
        'python app.py --port 8000'
    """

    path: str
    interpreter: str = sys.executable
    args: tuple[str, ...] = field(default_factory=tuple)
    cwd: str | None = None

    @classmethod
    def create(
        cls,
        path: str,
        interpreter: str | None = None,
        args: Sequence[str] = (),
        cwd: str | None = None,
    ) -> EntryPoint:
        return cls(path, interpreter or sys.executable, tuple(args), cwd)

    @property
    def program(self) -> str:
        return self.interpreter

    @property
    def arguments(self) -> tuple[str, ...]:
        return (self.path, *self.args)

    @property
    def resolved_path(self) -> str:
        if self.cwd is None or os.path.isabs(self.path):
            return self.path
        return os.path.join(self.cwd, self.path)

    def validate(self) -> None:
        """
        Check the script exists.

        Raises:
            SpawnError: If the entry file is missing
        """
        if not os.path.isfile(self.resolved_path):
            raise SpawnError("entry file not found", path=self.resolved_path)

    def describe(self) -> str:
        name = os.path.basename(self.interpreter) or self.interpreter
        return " ".join([name, *self.arguments])
