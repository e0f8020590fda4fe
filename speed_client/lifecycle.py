from __future__ import annotations

import logging
from typing import Dict, List, Optional

from speed_config.subscription import Subscription


class LifecycleTracker:
    """Tracks listener handles and provides deterministic teardown."""

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger
        self._handles: Dict[int, Subscription] = {}

    @property
    def handles(self) -> List[Subscription]:
        return list(self._handles.values())

    def track_handle(self, handle: Optional[Subscription]) -> Optional[Subscription]:
        if handle is None:
            return None
        self._handles[id(handle)] = handle
        return handle

    def untrack_handle(self, handle: Optional[Subscription]) -> None:
        if handle is None:
            return
        self._handles.pop(id(handle), None)

    def release_all(self) -> None:
        """Unsubscribe every tracked handle, newest first."""
        handles = list(self._handles.values())
        self._handles.clear()
        for handle in reversed(handles):
            try:
                handle.unsubscribe()
            except Exception as exc:
                self._logger.warning("Failed to release %r: %s", handle, exc)

    def log_state(self, label: str) -> None:
        live = [handle for handle in self._handles.values() if handle.active]
        if live:
            self._logger.debug("Tracked handles %s: %s", label, live)
