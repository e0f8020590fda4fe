from __future__ import annotations

import logging
import webbrowser
from dataclasses import dataclass
from typing import Protocol

_LOGGER = logging.getLogger("TabSpeed.Client.Tabs")


@dataclass(frozen=True)
class SenderInfo:
    tab_id: int


class TabShim(Protocol):
    def request_sender_info(self) -> SenderInfo: ...
    def request_create_tab(self, url: str) -> None: ...


class DesktopTabShim:
    """Tab identity fixed at launch; new tabs open in the system browser."""

    def __init__(self, tab_id: int) -> None:
        self._info = SenderInfo(int(tab_id))

    def request_sender_info(self) -> SenderInfo:
        return self._info

    def request_create_tab(self, url: str) -> None:
        try:
            opened = webbrowser.open_new_tab(url)
        except webbrowser.Error as exc:
            _LOGGER.warning("Unable to open %s: %s", url, exc)
            return
        if not opened:
            _LOGGER.warning("No browser available to open %s", url)
