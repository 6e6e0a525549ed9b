"""
Settings resolution.

Sources, lowest precedence first:
    1. Settings defaults
    2. ``[tool.watchapp]`` table of the project's pyproject.toml (the manifest)
    3. YAML config file given with --config
    4. WATCHAPP_* environment variables (WATCHAPP_GRACE_MS=50)
    5. Command line flags
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import pydantic
import yaml

from ..exceptions import ConfigError
from .schemas import Settings

ENV_PREFIX = "WATCHAPP_"
MANIFEST_FILENAME = "pyproject.toml"

# Watch arguments meaning "the project directory itself"
ROOT_SYMBOLS = frozenset({"*", ".", ".*", "/"})

# Entry scripts directly under this directory are installed executables,
# not project sources
BIN_DIR = "bin"


def _normalize_keys(data: Mapping[str, Any]) -> dict[str, Any]:
    return {str(k).replace("-", "_").lower(): v for k, v in data.items()}


def read_manifest(project_dir: Path) -> dict[str, Any]:
    """
    Read the ``[tool.watchapp]`` table from pyproject.toml.

    Returns an empty dict when the file or the table is missing.

    Raises:
        ConfigError: If pyproject.toml exists but cannot be parsed
    """
    path = project_dir / MANIFEST_FILENAME
    if not path.is_file():
        return {}
    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError("cannot read manifest", path=str(path), error=str(e)) from e

    table = data.get("tool", {}).get("watchapp", {})
    if not isinstance(table, dict):
        raise ConfigError("[tool.watchapp] must be a table", path=str(path))
    return _normalize_keys(table)


def read_config_file(path: Path) -> dict[str, Any]:
    """
    Load a YAML settings file.

    Raises:
        ConfigError: If the file is missing, invalid YAML, or not a mapping
    """
    if not path.is_file():
        raise ConfigError("config file not found", path=str(path))
    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError("cannot read config file", path=str(path), error=str(e)) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("config file must contain a mapping", path=str(path))
    return _normalize_keys(data)


def _convert_env_value(value: str) -> Any:
    """Convert an environment string to bool, int, float, list or str."""
    if value.lower() in ("null", "none", ""):
        return None
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    if "," in value:
        return [_convert_env_value(v.strip()) for v in value.split(",")]
    try:
        if "." in value:
            return float(value)
        return int(value)
    except ValueError:
        pass
    return value


def env_overrides(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Collect WATCHAPP_* variables as settings keys (WATCHAPP_GRACE_MS -> grace_ms)."""
    if environ is None:
        environ = os.environ
    overrides = {}
    for key, value in environ.items():
        if key.startswith(ENV_PREFIX) and len(key) > len(ENV_PREFIX):
            name = key[len(ENV_PREFIX) :].lower()
            if name in Settings.model_fields:
                overrides[name] = _convert_env_value(value)
    return overrides


def _validation_summary(e: pydantic.ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
    )


def load_settings(
    cli: Mapping[str, Any] | None = None,
    project_dir: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """
    Merge every settings source and validate the result.

    Args:
        cli: Values from the command line; None values are treated as unset.
            A "config" key names a YAML file (relative to project_dir).
        project_dir: Directory holding pyproject.toml (cwd by default)
        environ: Environment mapping (os.environ by default)

    Raises:
        ConfigError: If a source is unreadable, a value is invalid, or no
            entry point can be resolved, or the entry is a script under bin/
    """
    project = Path(project_dir) if project_dir is not None else Path.cwd()
    cli = dict(cli or {})
    config_file = cli.pop("config", None)

    merged: dict[str, Any] = {}
    merged.update(read_manifest(project))
    if config_file:
        config_path = Path(config_file)
        if not config_path.is_absolute():
            config_path = project / config_path
        merged.update(read_config_file(config_path))
    merged.update(env_overrides(environ))
    merged.update({k: v for k, v in cli.items() if v is not None})

    try:
        settings = Settings(**merged)
    except pydantic.ValidationError as e:
        raise ConfigError("invalid settings", errors=_validation_summary(e)) from e

    if settings.entry is None:
        raise ConfigError(
            "no entry point: pass --entry or set 'entry' under [tool.watchapp]",
            manifest=str(project / MANIFEST_FILENAME),
        )
    if os.path.normpath(os.path.dirname(settings.entry)) == BIN_DIR:
        raise ConfigError("unable to watch a binary", entry=settings.entry)
    return settings


def resolve_watch_root(watch: str, project_dir: str | Path | None = None) -> Path:
    """
    Resolve the directory to watch.

    Raises:
        ConfigError: If the directory does not exist
    """
    project = Path(project_dir) if project_dir is not None else Path.cwd()
    if watch in ROOT_SYMBOLS:
        return project.resolve()

    root = Path(watch)
    if not root.is_absolute():
        root = project / root
    if not root.is_dir():
        raise ConfigError("watch directory not found", path=str(root))
    return root.resolve()
