"""Runtime side of TabSpeed: hotkeys, command handlers, element trackers, Qt adapters."""

from .hotkeys import ElementTarget, HotkeyMatcher, KeyEvent
from .manager import Manager

__all__ = ["ElementTarget", "HotkeyMatcher", "KeyEvent", "Manager"]
