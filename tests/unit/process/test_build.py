"""Tests for BuildStep."""

import subprocess
import sys
import threading
import time

import pytest

from watchapp.exceptions import BuildError
from watchapp.process import BuildStep


@pytest.mark.unit
class TestBuildStepInit:
    def test_empty_command_rejected(self):
        with pytest.raises(ValueError):
            BuildStep("   ")

    def test_repr(self):
        assert repr(BuildStep("make")) == "BuildStep('make')"

    def test_cancel_without_build(self):
        assert BuildStep("make").cancel() is False


@pytest.mark.integration
class TestBuildStepRun:
    """Test running shell build commands."""

    def test_successful_build(self, temp_dir):
        step = BuildStep("echo built > out.txt", cwd=str(temp_dir))
        result = step.run()

        assert result.returncode == 0
        assert result.command == "echo built > out.txt"
        assert result.duration >= 0
        assert (temp_dir / "out.txt").read_text().strip() == "built"

    def test_failing_build_raises(self):
        with pytest.raises(BuildError) as exc_info:
            BuildStep("exit 2").run()
        assert exc_info.value.context["returncode"] == 2
        assert exc_info.value.context["command"] == "exit 2"

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX shell")
    def test_cancel_terminates_running_build(self):
        step = BuildStep(f'exec "{sys.executable}" -c "import time; time.sleep(30)"')
        errors = []

        def run():
            try:
                step.run()
            except BuildError as e:
                errors.append(e)

        thread = threading.Thread(target=run)
        thread.start()

        deadline = time.monotonic() + 5.0
        while not step.cancel():
            assert time.monotonic() < deadline
            time.sleep(0.01)
        thread.join(10.0)

        assert not thread.is_alive()
        assert len(errors) == 1
        assert errors[0].context["returncode"] != 0


@pytest.mark.integration
class TestBuildStepCancelled:
    """A cancelled step never launches its command again."""

    def test_cancel_before_run_prevents_launch(self, temp_dir):
        step = BuildStep("echo built > out.txt", cwd=str(temp_dir))

        assert step.cancel() is False
        assert step.cancelled
        with pytest.raises(BuildError, match="build cancelled"):
            step.run()
        assert not (temp_dir / "out.txt").exists()

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX shell")
    def test_cancel_during_launch_terminates_build(self, temp_dir, monkeypatch):
        step = BuildStep(
            f'exec "{sys.executable}" -c "import time; time.sleep(30)"',
            cwd=str(temp_dir),
        )
        real_popen = subprocess.Popen

        def popen_then_cancel(*args, **kwargs):
            proc = real_popen(*args, **kwargs)
            step.cancel()
            return proc

        monkeypatch.setattr(subprocess, "Popen", popen_then_cancel)

        started = time.monotonic()
        with pytest.raises(BuildError, match="build cancelled"):
            step.run()
        assert time.monotonic() - started < 10.0
