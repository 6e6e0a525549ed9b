"""
Logger class with structured extra fields.

Extends the standard Python logger with:
- Extra fields merged from the logger itself and each call
- A TRACE level below DEBUG
- Derived "view" loggers that share the root logger's handlers
"""

import logging
from collections.abc import Mapping
from typing import Any

from .config import LogConfig
from .constants import LogConstants
from .formatters import EXTRA_ATTR

TRACE = LogConstants.CUSTOM_LEVELS["TRACE"]


class Logger(logging.Logger):
    """
    Logger that keeps ``extra`` fields as structured data.

    The standard logger copies ``extra`` keys onto the record as attributes;
    this logger additionally stores the merged mapping under a private
    attribute so the formatter can render every field, in call order.
    """

    def __init__(
        self,
        name: str,
        config: LogConfig | None = None,
        extra: Mapping[str, Any] | None = None,
    ) -> None:
        """
        Initialize the logger.

        Args:
            name: Logger name ("/" for the root, "/coordinator" for views)
            config: Logger configuration; INFO with colors when None
            extra: Fields included in every record of this logger
        """
        if config is None:
            config = LogConfig()
        if config.level is False:
            super().__init__(name, logging.CRITICAL + 1)
        else:
            super().__init__(name, config.level)
        self._config = config
        self._extra = dict(extra or {})
        self._root_logger: Logger | None = None

    @property
    def config(self) -> LogConfig:
        return self._config

    def makeRecord(  # type: ignore[override]
        self,
        name: str,
        level: int,
        fn: str,
        lno: int,
        msg: object,
        args: Any,
        exc_info: Any,
        func: str | None = None,
        extra: Mapping[str, Any] | None = None,
        sinfo: str | None = None,
    ) -> logging.LogRecord:
        merged = dict(self._extra)
        if extra:
            merged.update(extra)
        # Keys that collide with LogRecord attributes must not reach the base
        # implementation, which raises KeyError for them.
        safe = {k: v for k, v in merged.items() if k not in _RESERVED}
        record = super().makeRecord(
            name, level, fn, lno, msg, args, exc_info, func, safe, sinfo
        )
        setattr(record, EXTRA_ATTR, merged)
        return record

    def trace(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log a TRACE level message (more verbose than DEBUG)."""
        if self.isEnabledFor(TRACE):
            self._log(TRACE, msg, args, **kwargs)

    def callHandlers(self, record: logging.LogRecord) -> None:
        """Derived view loggers emit through the root logger's handlers."""
        if self._root_logger is None:
            super().callHandlers(record)
            return
        for handler in self._root_logger.handlers:
            if record.levelno >= handler.level:
                handler.handle(record)


_RESERVED = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime"}
