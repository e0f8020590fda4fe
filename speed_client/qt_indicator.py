"""On-screen indicator and backdrop effects rendered with Qt widgets."""
from __future__ import annotations

import logging
import re
from typing import List, Optional, Tuple

from PyQt6.QtCore import Qt, QTimer
from PyQt6.QtGui import QColor, QFont
from PyQt6.QtWidgets import (
    QGraphicsBlurEffect,
    QGraphicsColorizeEffect,
    QGraphicsEffect,
    QGraphicsOpacityEffect,
    QLabel,
    QWidget,
)

_LOGGER = logging.getLogger("TabSpeed.Client.Indicator")

SHOW_TTL_MS = 1200
SHOW_SMALL_TTL_MS = 900
LARGE_POINT_SIZE = 28
SMALL_POINT_SIZE = 16

_FILTER_RE = re.compile(r"([a-z][a-z-]*)\(\s*(-?[\d.]+)\s*([a-z%]*)\s*\)", re.IGNORECASE)
_SEPIA = QColor(112, 66, 20)


def parse_filter_string(value: str) -> List[Tuple[str, float]]:
    """Split ``"blur(2px) grayscale(1)"`` into ``[("blur", 2.0), ("grayscale", 1.0)]``."""
    parsed = []
    for name, number, _unit in _FILTER_RE.findall(value or ""):
        try:
            parsed.append((name.lower(), float(number)))
        except ValueError:
            continue
    return parsed


def build_graphics_effect(value: str) -> Optional[QGraphicsEffect]:
    """Closest single QGraphicsEffect for a filter string.

    Qt allows one effect per widget, so the first supported function wins:
    blur, then grayscale/sepia, then opacity for brightness below 1.
    """
    functions = dict(parse_filter_string(value))
    if not functions:
        return None
    blur = functions.get("blur", 0.0)
    if blur > 0:
        effect = QGraphicsBlurEffect()
        effect.setBlurRadius(blur)
        return effect
    for name, color in (("grayscale", QColor(128, 128, 128)), ("sepia", _SEPIA)):
        strength = functions.get(name, 0.0)
        if strength > 0:
            effect = QGraphicsColorizeEffect()
            effect.setColor(color)
            effect.setStrength(min(1.0, strength))
            return effect
    brightness = functions.get("brightness")
    if brightness is not None and brightness < 1:
        effect = QGraphicsOpacityEffect()
        effect.setOpacity(max(0.0, brightness))
        return effect
    _LOGGER.debug("No Qt effect for filter '%s'", value)
    return None


class QtIndicator(QLabel):
    """Transient centred label plus the backdrop effect on ``backdrop_target``."""

    def __init__(self, parent: QWidget, *, backdrop_target: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._backdrop_target = backdrop_target
        self._backdrop_value = ""
        self._released = False
        self._clear_timer = QTimer(self)
        self._clear_timer.setSingleShot(True)
        self._clear_timer.timeout.connect(self._clear_message)
        self.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.setAttribute(Qt.WidgetAttribute.WA_TransparentForMouseEvents, True)
        self.setStyleSheet(
            "QLabel { color: white; background-color: rgba(0, 0, 0, 160);"
            " border-radius: 8px; padding: 6px 14px; }"
        )
        self.hide()

    @property
    def backdrop_value(self) -> str:
        return self._backdrop_value

    def show(self, text: str = "") -> None:  # type: ignore[override]
        self._display(text, LARGE_POINT_SIZE, SHOW_TTL_MS)

    def show_small(self, text: str) -> None:
        self._display(text, SMALL_POINT_SIZE, SHOW_SMALL_TTL_MS)

    def show_backdrop(self, filter_value: str) -> None:
        if self._released or self._backdrop_target is None:
            return
        if filter_value == self._backdrop_value:
            return
        self._backdrop_value = filter_value
        self._backdrop_target.setGraphicsEffect(build_graphics_effect(filter_value))

    def hide_backdrop(self) -> None:
        if self._backdrop_target is None or not self._backdrop_value:
            return
        self._backdrop_value = ""
        self._backdrop_target.setGraphicsEffect(None)

    def release(self) -> None:
        if self._released:
            return
        self.hide_backdrop()
        self._released = True
        self._clear_timer.stop()
        self.hide()
        self.deleteLater()

    def _display(self, text: str, point_size: int, ttl_ms: int) -> None:
        if self._released:
            return
        self._clear_timer.stop()
        font = QFont(self.font())
        font.setPointSize(point_size)
        self.setFont(font)
        self.setText(text)
        self.adjustSize()
        self._recentre()
        super().show()
        self.raise_()
        self._clear_timer.start(ttl_ms)

    def _recentre(self) -> None:
        parent = self.parentWidget()
        if parent is None:
            return
        x = max(0, (parent.width() - self.width()) // 2)
        y = max(0, (parent.height() - self.height()) // 3)
        self.move(x, y)

    def _clear_message(self) -> None:
        self.clear()
        self.hide()
