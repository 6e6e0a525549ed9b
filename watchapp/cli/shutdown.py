"""
Signal handling for supervisor shutdown.

SIGINT and SIGTERM end the watch session through a callback (normally
RestartCoordinator.shutdown). The callback runs on its own thread: a handler
interrupts whatever the main thread was doing, possibly inside the
coordinator's lock, and must not re-enter it. Repeated signals are ignored
so one Ctrl+C produces exactly one teardown.
"""

import signal
import threading
from collections.abc import Callable
from types import FrameType
from typing import Any


class ShutdownManager:
    """
    Installs SIGINT/SIGTERM handlers for the duration of a session.

    Usage:
        with ShutdownManager(coordinator.shutdown) as manager:
            result = coordinator.wait()
            manager.join(5.0)
        if manager.is_shutting_down():
            lg.info("stopped by", extra={"signal": manager.signal_name})
    """

    def __init__(self, on_shutdown: Callable[[], Any]) -> None:
        self._on_shutdown = on_shutdown
        self._shutting_down = False
        self._signal_name: str | None = None
        self._original_handlers: dict[signal.Signals, Any] = {}
        self._thread: threading.Thread | None = None

    def register_signal_handlers(self) -> None:
        """Register handlers for SIGTERM and SIGINT, remembering the originals."""
        for sig in (signal.SIGTERM, signal.SIGINT):
            self._original_handlers[sig] = signal.signal(sig, self._handle_signal)

    def restore_signal_handlers(self) -> None:
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers = {}

    def _handle_signal(self, signum: int, frame: FrameType | None) -> None:
        if self._shutting_down:
            return  # Ignore duplicate signals
        self._shutting_down = True
        self._signal_name = signal.Signals(signum).name
        self._thread = threading.Thread(
            target=self._on_shutdown, name="watchapp-shutdown", daemon=True
        )
        self._thread.start()

    def join(self, timeout: float | None = None) -> bool:
        """Wait for a signal-triggered shutdown callback; True once it has returned."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def is_shutting_down(self) -> bool:
        return self._shutting_down

    @property
    def signal_name(self) -> str | None:
        """Name of the signal that triggered shutdown, if any."""
        return self._signal_name

    def __enter__(self) -> "ShutdownManager":
        self.register_signal_handlers()
        return self

    def __exit__(self, *args: object) -> None:
        self.restore_signal_handlers()
