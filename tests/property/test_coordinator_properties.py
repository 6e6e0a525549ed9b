"""Property-based tests for restart coordination and settings parsing."""

import tempfile
import time
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from tests.helpers.fakes import FakeSpawner
from watchapp.config import Settings
from watchapp.config.loader import _convert_env_value
from watchapp.core import EntryPoint, RestartCoordinator, RunState
from watchapp.log import create_root_lg

# A restart request, or a pause in milliseconds between requests
actions = st.lists(
    st.one_of(st.just("restart"), st.integers(min_value=0, max_value=5)),
    min_size=1,
    max_size=10,
)


@pytest.mark.property
class TestCoordinatorProperties:
    """Invariants holding for any interleaving of restart requests."""

    @settings(max_examples=25, deadline=None)
    @given(steps=actions, grace_ms=st.integers(min_value=0, max_value=20))
    def test_single_child_and_latest_request_wins(self, steps, grace_ms):
        with tempfile.TemporaryDirectory() as tmp:
            script = Path(tmp) / "app.py"
            script.write_text("")
            spawner = FakeSpawner(exit_delay=0.002)
            coordinator = RestartCoordinator(
                create_root_lg("false"),
                EntryPoint.create(str(script)),
                grace_ms=grace_ms,
                spawner=spawner,
            )
            try:
                coordinator.start()
                restarts = 0
                for step in steps:
                    if step == "restart":
                        assert coordinator.request_restart()
                        restarts += 1
                    else:
                        time.sleep(step / 1000.0)

                assert coordinator.wait_settled(5.0)
                assert coordinator.state is RunState.RUNNING
                assert coordinator.current_request.seq == restarts + 1
                assert spawner.max_live == 1
                assert 1 <= spawner.count <= restarts + 1
            finally:
                coordinator.shutdown()
                coordinator.wait(5.0)
            assert spawner.live == 0


@pytest.mark.property
class TestSettingsProperties:
    @given(n=st.integers(min_value=-(10**9), max_value=10**9))
    def test_env_integers_roundtrip(self, n):
        assert _convert_env_value(str(n)) == n

    @given(
        words=st.lists(
            st.text(alphabet="abcdefghij-=0123456789", min_size=1, max_size=8),
            max_size=6,
        )
    )
    def test_string_args_split_on_whitespace(self, words):
        assert Settings(args=" ".join(words)).args == words
