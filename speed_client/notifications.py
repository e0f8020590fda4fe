from __future__ import annotations

from typing import Protocol


class NotificationSink(Protocol):
    """Transient on-screen indicator. Calls are fire-and-forget."""

    def show(self, text: str) -> None: ...
    def show_small(self, text: str) -> None: ...
    def show_backdrop(self, filter_value: str) -> None: ...
    def hide_backdrop(self) -> None: ...
    def release(self) -> None: ...
