"""Terminal output helpers."""

from .console import WATCHAPP_THEME, Console, should_use_color

__all__ = ["WATCHAPP_THEME", "Console", "should_use_color"]
