"""Tests for EntryPoint and the coordinator value types."""

import os
import sys

import pytest

from watchapp.core import (
    TRANSITIONS,
    CloseReason,
    EntryPoint,
    RunState,
    SessionResult,
)
from watchapp.exceptions import SpawnError


@pytest.mark.unit
class TestEntryPoint:
    """Test entry point command construction."""

    def test_defaults_to_current_interpreter(self):
        entry = EntryPoint.create("app.py")
        assert entry.program == sys.executable
        assert entry.arguments == ("app.py",)

    def test_arguments_follow_script(self):
        entry = EntryPoint.create("app.py", interpreter="python3", args=["--port", "8000"])
        assert entry.arguments == ("app.py", "--port", "8000")
        assert entry.describe() == "python3 app.py --port 8000"

    def test_describe_uses_interpreter_basename(self):
        entry = EntryPoint.create("app.py", interpreter="/usr/bin/python3")
        assert entry.describe() == "python3 app.py"

    def test_resolved_path_relative_to_cwd(self, temp_dir):
        entry = EntryPoint.create("app.py", cwd=str(temp_dir))
        assert entry.resolved_path == os.path.join(str(temp_dir), "app.py")

    def test_absolute_path_kept(self, temp_dir):
        path = str(temp_dir / "app.py")
        assert EntryPoint.create(path, cwd="/elsewhere").resolved_path == path

    def test_validate_existing_file(self, temp_dir):
        (temp_dir / "app.py").write_text("")
        EntryPoint.create("app.py", cwd=str(temp_dir)).validate()

    def test_validate_missing_file(self, temp_dir):
        entry = EntryPoint.create("missing.py", cwd=str(temp_dir))
        with pytest.raises(SpawnError, match="entry file not found") as exc_info:
            entry.validate()
        assert exc_info.value.context["path"].endswith("missing.py")

    def test_is_immutable(self):
        entry = EntryPoint.create("app.py")
        with pytest.raises(AttributeError):
            entry.path = "other.py"


@pytest.mark.unit
class TestStateTypes:
    def test_closed_reachable_from_every_state(self):
        for state in RunState:
            if state is not RunState.CLOSED:
                assert RunState.CLOSED in TRANSITIONS[state]

    def test_closed_is_terminal(self):
        assert TRANSITIONS[RunState.CLOSED] == frozenset()

    def test_session_result_ok(self):
        assert SessionResult(CloseReason.SHUTDOWN, 0).ok
        assert not SessionResult(CloseReason.UNEXPECTED_EXIT, 2).ok
