"""
Log formatter rendering structured extra fields.

Output format:
    [12:34:56,789] [I] starting child  [cmd:python app.py] [pid:4242] [1234] [/coordinator]

Extra fields passed through ``extra={...}`` are rendered as ``[key:value]``
pairs after the message, aligned on a rule column, followed by the process id
and logger name. An ``exception`` extra is rendered as a traceback block.
"""

import logging
import re
import traceback
from typing import Any

from .colors import ColorManager
from .config import LogConfig
from .constants import LogConstants

EXTRA_ATTR = "_watchapp_extra"

_ANSI_PATTERN = re.compile(r"\x1b\[[0-9;]*m")


def _visual_len(text: str) -> int:
    """Width of text excluding ANSI escape codes."""
    if "\x1b" not in text:
        return len(text)
    return len(_ANSI_PATTERN.sub("", text))


def _render_value(value: Any) -> str:
    if isinstance(value, (list, tuple, set, frozenset)):
        return ",".join(str(v) for v in value)
    return str(value)


def _render_exception(e: BaseException) -> str:
    lines = traceback.format_exception(type(e), e, e.__traceback__)
    return "".join(lines).rstrip()


class LogFormatter(logging.Formatter):
    """
    Console formatter with level colors and ``[key:value]`` extra fields.

    Percent signs inside field values are escaped before the record's format
    string is built, so arbitrary paths and commands are safe to log.
    """

    def __init__(self, config: LogConfig) -> None:
        super().__init__(LogConstants.DEFAULT_FORMAT)
        self._config = config

    @property
    def config(self) -> LogConfig:
        return self._config

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        s = super().formatTime(record, "%H:%M:%S")
        s += f",{int(record.msecs):03d}"
        if self._config.micros:
            s += f".{int((record.created % 1) * 1_000_000) % 1000:03d}"
        return s

    def format(self, record: logging.LogRecord) -> str:
        fmt = self._build_format(record)
        self._style._fmt = fmt
        self._fmt = fmt
        return super().format(record)

    def _padding(self, record: logging.LogRecord) -> str:
        # "[" + timestamp + "] [L] " + message
        stamp = 16 if self._config.micros else 12
        width = stamp + 7 + _visual_len(record.getMessage())
        return " " * max(1, LogConstants.DEFAULT_RULE_WIDTH - width)

    def _fields(self, record: logging.LogRecord) -> tuple[list[tuple[str, str]], Any]:
        extra = getattr(record, EXTRA_ATTR, None) or {}
        fields = [
            (k, _render_value(v).replace("%", "%%"))
            for k, v in extra.items()
            if k != "exception"
        ]
        return fields, extra.get("exception")

    def _build_format(self, record: logging.LogRecord) -> str:
        fields, exc = self._fields(record)
        if self._config.colors:
            fmt = self._colored(record, fields)
        else:
            fmt = self._plain(record, fields)
        if isinstance(exc, BaseException):
            fmt += "\n" + _render_exception(exc).replace("%", "%%")
        return fmt

    def _plain(self, record: logging.LogRecord, fields: list[tuple[str, str]]) -> str:
        fmt = LogConstants.DEFAULT_FORMAT + self._padding(record)
        fmt += " ".join(f"[{k}:{v}]" for k, v in fields)
        if fields:
            fmt += " "
        return fmt + "[%(process)d] [%(name)s]"

    def _colored(
        self, record: logging.LogRecord, fields: list[tuple[str, str]]
    ) -> str:
        base = ColorManager.for_level(record.levelno)
        col = ColorManager.plain(base)
        bold = ColorManager.bold(base)
        reset = ColorManager.RESET

        fmt = col + "[%(asctime)s] [" + bold + "%(levelname).1s" + reset + col + "] "
        fmt += bold + "%(message)s" + reset + col + self._padding(record)
        fmt += " ".join(
            f"{reset}{col}{k}[{bold}{v}{reset}{col}]" for k, v in fields
        )

        gray = ColorManager.plain(ColorManager.gray(9))
        if fields:
            fmt += " "
        fmt += f"{reset}{gray}[%(process)d] [%(name)s]{reset}"
        return fmt
