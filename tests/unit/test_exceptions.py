"""
Tests for the watchapp exception hierarchy.

Tests key exception features including:
- Base WatchappError with context
- Specific exception classes and inheritance
"""

import pytest

from watchapp.exceptions import (
    BuildError,
    ConfigError,
    SpawnError,
    UnexpectedExit,
    WatchappError,
)
from watchapp.log import InvalidLogLevelError, LogError


@pytest.mark.unit
class TestWatchappError:
    def test_message_only(self):
        error = WatchappError("Test error")
        assert str(error) == "Test error"
        assert error.message == "Test error"
        assert error.context == {}

    def test_context_in_str(self):
        error = WatchappError("entry file not found", path="app.py", code=2)
        assert str(error) == "entry file not found (path=app.py, code=2)"
        assert error.context == {"path": "app.py", "code": 2}


@pytest.mark.unit
class TestSubclasses:
    @pytest.mark.parametrize(
        "cls", [ConfigError, SpawnError, BuildError, LogError, InvalidLogLevelError]
    )
    def test_inherit_from_base(self, cls):
        assert issubclass(cls, WatchappError)

    def test_unexpected_exit_keeps_returncode(self):
        error = UnexpectedExit("process exited unexpectedly", returncode=3, cmd="python app.py")
        assert error.returncode == 3
        assert error.context == {"returncode": 3, "cmd": "python app.py"}
        assert "returncode=3" in str(error)

    def test_can_be_caught_as_base(self):
        with pytest.raises(WatchappError):
            raise SpawnError("executable not found", program="python9")
