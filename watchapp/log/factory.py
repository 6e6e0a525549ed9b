"""
Factory for root and derived loggers.

Loggers are not registered with ``logging.getLogger``'s manager; each
supervisor session owns its own root, which keeps tests independent.
"""

import logging
import sys
from collections.abc import Mapping
from typing import Any, TextIO

from .config import LogConfig
from .formatters import LogFormatter
from .logger import Logger


class LoggerFactory:
    """Creates configured loggers."""

    @staticmethod
    def create_root(
        config: LogConfig,
        stream: TextIO | None = None,
        extra: Mapping[str, Any] | None = None,
    ) -> Logger:
        """
        Create a root logger writing to ``stream`` (stderr by default).

        Example:
            >>> lg = LoggerFactory.create_root(LogConfig.from_params("debug"))
            >>> lg.info("watching", extra={"root": "."})
            [12:34:56,789] [I] watching  [root:.] [1234] [/]
        """
        lg = Logger("/", config, extra)
        handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
        handler.setFormatter(LogFormatter(config))
        if config.level is not False:
            handler.setLevel(config.level)
        lg.addHandler(handler)
        lg.propagate = False
        return lg

    @staticmethod
    def derive(
        parent: Logger,
        tags: str | list[str],
        extra: Mapping[str, Any] | None = None,
    ) -> Logger:
        """
        Derive a view logger that shares the root's handlers.

        Examples:
            >>> LoggerFactory.derive(root, "coordinator").name
            '/coordinator'
            >>> LoggerFactory.derive(root, ["watch", "fs"]).name
            '/watch/fs'

        Args:
            parent: Root or previously derived logger
            tags: Single tag or list of tags appended to the parent's name
            extra: Fields added on top of the parent's fields
        """
        if isinstance(tags, str):
            tags = [tags]

        prefix = parent.name if parent.name == "/" else parent.name + "/"
        name = prefix + "/".join(tags)

        fields = dict(parent._extra)
        fields.update(extra or {})

        lg = parent.__class__(name, parent.config, fields)
        lg.setLevel(parent.level)
        lg._root_logger = parent._root_logger or parent
        lg.parent = parent
        lg.propagate = False
        return lg
