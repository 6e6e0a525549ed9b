"""
Settings schema validated with Pydantic.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core import DEFAULT_GRACE_MS, DEFAULT_KILL_TIMEOUT
from ..watch import DEFAULT_DELAY_MS, DEFAULT_EXCLUDE

VALID_LOG_LEVELS = ("trace", "debug", "info", "warning", "error", "critical", "false")


class Settings(BaseModel):
    """Resolved supervisor settings."""

    entry: str | None = Field(
        default=None, description="Script to run; required after all sources merge"
    )
    build: str | None = Field(
        default=None, description="Shell command run before each (re)start"
    )
    watch: str = Field(default=".", description="Directory watched for changes")
    delay_ms: int = Field(
        default=DEFAULT_DELAY_MS, ge=0, description="Debounce delay for change bursts"
    )
    grace_ms: int = Field(
        default=DEFAULT_GRACE_MS,
        ge=0,
        description="Pause between killing the old process and starting the new one",
    )
    kill_timeout: float = Field(
        default=DEFAULT_KILL_TIMEOUT,
        gt=0,
        description="Seconds a killed process may take before SIGKILL",
    )
    interpreter: str | None = Field(
        default=None, description="Interpreter running the entry (current Python)"
    )
    args: list[str] = Field(
        default_factory=list, description="Arguments passed to the entry script"
    )
    exclude: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDE),
        description="Directory-name prefixes ignored by the watcher",
    )
    log_level: str = Field(default="info", description="Log level")
    colors: bool = Field(default=True, description="Colored console output")

    model_config = ConfigDict(extra="forbid")

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: Any) -> Any:
        """Validate log level is a recognized level."""
        if isinstance(v, bool) and not v:
            return "false"
        if not isinstance(v, str) or v.lower() not in VALID_LOG_LEVELS:
            raise ValueError(
                f"Invalid log level '{v}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
            )
        return v.lower()

    @field_validator("args", "exclude", mode="before")
    @classmethod
    def split_strings(cls, v: Any) -> Any:
        """Accept a single string where a list is expected."""
        if isinstance(v, str):
            return v.split()
        if isinstance(v, (list, tuple)):
            return [str(item) for item in v]
        if isinstance(v, (int, float)):
            return [str(v)]
        return v

    @field_validator("entry", "build", "interpreter")
    @classmethod
    def blank_is_unset(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v
