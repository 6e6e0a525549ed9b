"""
Command line parsing.

Flags default to "unset" so that the manifest, config file and environment
can supply values; the help text shows the built-in Settings defaults.
"""

import argparse
from collections.abc import Sequence
from typing import Any

from .. import __version__
from ..config import Settings

PASSTHROUGH_SEPARATOR = "--"


class DefaultsHelpFormatter(argparse.HelpFormatter):
    """Help formatter appending the Settings default of each option."""

    def _get_help_string(self, action: argparse.Action) -> str:
        help_text = action.help or ""
        field = Settings.model_fields.get(action.dest)
        if field is None or field.is_required() or action.nargs == 0:
            return help_text
        default = field.get_default(call_default_factory=True)
        if default is None:
            return help_text
        return help_text + f" (default: {default})"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="watchapp",
        description="Restart a Python application when files change.",
        formatter_class=DefaultsHelpFormatter,
        epilog="example: watchapp src -e app.py -d 500 -- --port 8000",
    )
    parser.add_argument(
        "watch",
        nargs="?",
        default=None,
        help="directory to watch ('.', '*', '.*' or '/' mean the project directory)",
    )
    parser.add_argument(
        "-e", "--entry", default=None, help="script to run (overrides the manifest)"
    )
    parser.add_argument(
        "-b", "--build", default=None, help="shell command run before each (re)start"
    )
    parser.add_argument(
        "-d",
        "--delay",
        dest="delay_ms",
        type=int,
        default=None,
        metavar="MS",
        help="quiet period before a burst of changes triggers a restart",
    )
    parser.add_argument(
        "-g",
        "--grace",
        dest="grace_ms",
        type=int,
        default=None,
        metavar="MS",
        help="pause between stopping the old process and starting the new one",
    )
    parser.add_argument(
        "--kill-timeout",
        dest="kill_timeout",
        type=float,
        default=None,
        metavar="SECS",
        help="time a stopped process gets before it is killed",
    )
    parser.add_argument(
        "--interpreter", default=None, help="interpreter running the entry script"
    )
    parser.add_argument(
        "-c", "--config", default=None, help="YAML file with watchapp settings"
    )
    parser.add_argument("--log-level", dest="log_level", default=None, help="log level")
    parser.add_argument(
        "--no-color",
        dest="colors",
        action="store_const",
        const=False,
        default=None,
        help="disable colored output",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="do not print the startup banner or the closing summary (errors still show)",
    )
    parser.add_argument(
        "-v", "--version", action="version", version=f"watchapp {__version__}"
    )
    return parser


def split_passthrough(argv: Sequence[str]) -> tuple[list[str], list[str] | None]:
    """Split argv at the first '--'; the tail is passed to the child process."""
    argv = list(argv)
    if PASSTHROUGH_SEPARATOR not in argv:
        return argv, None
    idx = argv.index(PASSTHROUGH_SEPARATOR)
    return argv[:idx], argv[idx + 1 :]


def parse_args(argv: Sequence[str]) -> tuple[dict[str, Any], bool]:
    """
    Parse argv into settings overrides.

    Returns:
        (overrides, quiet) where overrides maps Settings fields (plus "config")
        to values, None meaning "not given"
    """
    own, passthrough = split_passthrough(argv)
    ns = build_parser().parse_args(own)
    overrides = vars(ns).copy()
    quiet = overrides.pop("quiet")
    overrides["args"] = passthrough
    return overrides, quiet
