"""Supervisor settings: schema and multi-source loading."""

from .loader import (
    ENV_PREFIX,
    MANIFEST_FILENAME,
    env_overrides,
    load_settings,
    read_config_file,
    read_manifest,
    resolve_watch_root,
)
from .schemas import Settings

__all__ = [
    "ENV_PREFIX",
    "MANIFEST_FILENAME",
    "Settings",
    "env_overrides",
    "load_settings",
    "read_config_file",
    "read_manifest",
    "resolve_watch_root",
]
