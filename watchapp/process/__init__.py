"""Child process primitives: the supervised process handle and the build step."""

from .build import BuildResult, BuildStep
from .handle import ExitStatus, ProcessHandle

__all__ = ["BuildResult", "BuildStep", "ExitStatus", "ProcessHandle"]
