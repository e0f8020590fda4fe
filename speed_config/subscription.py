from __future__ import annotations

from typing import Callable, Optional


class Subscription:
    """Handle returned by every ``subscribe``/``add_listener`` call.

    ``unsubscribe`` is idempotent so owners can release handles in any order.
    """

    def __init__(self, cancel: Callable[[], None], label: str = "") -> None:
        self._cancel: Optional[Callable[[], None]] = cancel
        self.label = label

    @property
    def active(self) -> bool:
        return self._cancel is not None

    def unsubscribe(self) -> None:
        cancel = self._cancel
        self._cancel = None
        if cancel is not None:
            cancel()

    def __repr__(self) -> str:
        state = "active" if self.active else "released"
        return f"Subscription({self.label or 'anonymous'}, {state})"
