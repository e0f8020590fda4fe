"""Qt adapters for scheduling and keyboard delivery."""
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Tuple

from PyQt6.QtCore import QEvent, QObject, Qt, QTimer
from PyQt6.QtGui import QKeyEvent
from PyQt6.QtWidgets import QApplication, QLineEdit, QPlainTextEdit, QTextEdit, QWidget

from speed_client.hotkeys import ElementTarget, KeyEvent, KeyListener
from speed_config.errors import ConfigurationError
from speed_config.subscription import Subscription

_LOGGER = logging.getLogger("TabSpeed.Client.Qt")

ErrorCallback = Callable[[ConfigurationError], None]

_SPECIAL_KEYS: Dict[int, str] = {
    Qt.Key.Key_Space.value: " ",
    Qt.Key.Key_Left.value: "ArrowLeft",
    Qt.Key.Key_Right.value: "ArrowRight",
    Qt.Key.Key_Up.value: "ArrowUp",
    Qt.Key.Key_Down.value: "ArrowDown",
    Qt.Key.Key_Escape.value: "Escape",
    Qt.Key.Key_Return.value: "Enter",
    Qt.Key.Key_Enter.value: "Enter",
    Qt.Key.Key_Tab.value: "Tab",
    Qt.Key.Key_Backspace.value: "Backspace",
    Qt.Key.Key_Delete.value: "Delete",
    Qt.Key.Key_Home.value: "Home",
    Qt.Key.Key_End.value: "End",
    Qt.Key.Key_PageUp.value: "PageUp",
    Qt.Key.Key_PageDown.value: "PageDown",
    Qt.Key.Key_Shift.value: "Shift",
    Qt.Key.Key_Control.value: "Control",
    Qt.Key.Key_Alt.value: "Alt",
    Qt.Key.Key_Meta.value: "Meta",
}


class QtScheduler:
    """``after``/``after_cancel``/``post`` on top of single-shot QTimers."""

    def __init__(self, parent: Optional[QObject] = None) -> None:
        self._parent = parent
        self._timers: Dict[int, QTimer] = {}
        self._next_token = 0

    def after(self, delay_ms: int, callback: Callable[[], None]) -> int:
        token = self._next_token
        self._next_token += 1
        timer = QTimer(self._parent)
        timer.setSingleShot(True)

        def _fire() -> None:
            self._timers.pop(token, None)
            timer.deleteLater()
            try:
                callback()
            except Exception:
                _LOGGER.exception("Scheduled callback failed")

        timer.timeout.connect(_fire)
        self._timers[token] = timer
        timer.start(max(0, int(delay_ms)))
        return token

    def after_cancel(self, handle: object) -> None:
        timer = self._timers.pop(handle, None)  # type: ignore[arg-type]
        if timer is None:
            return
        timer.stop()
        timer.deleteLater()

    def post(self, callback: Callable[[], None]) -> None:
        self.after(0, callback)

    def cancel_all(self) -> None:
        for token in list(self._timers):
            self.after_cancel(token)


def key_name(event: QKeyEvent) -> str:
    special = _SPECIAL_KEYS.get(int(event.key()))
    if special is not None:
        return special
    text = event.text()
    if text and text.isprintable():
        return text
    # Ctrl combinations yield control characters in text(); fall back to the key code.
    code = int(event.key())
    if 0x20 < code < 0x7F:
        return chr(code)
    return ""


def target_for_widget(widget: Optional[QWidget]) -> ElementTarget:
    if isinstance(widget, QLineEdit):
        return ElementTarget(tag_name="INPUT", is_content_editable=not widget.isReadOnly())
    if isinstance(widget, (QTextEdit, QPlainTextEdit)):
        return ElementTarget(tag_name="TEXTAREA", is_content_editable=not widget.isReadOnly())
    return ElementTarget()


def convert_key_event(event: QKeyEvent, widget: Optional[QWidget]) -> KeyEvent:
    modifiers = event.modifiers()
    return KeyEvent(
        key=key_name(event),
        ctrl=bool(modifiers & Qt.KeyboardModifier.ControlModifier),
        alt=bool(modifiers & Qt.KeyboardModifier.AltModifier),
        shift=bool(modifiers & Qt.KeyboardModifier.ShiftModifier),
        meta=bool(modifiers & Qt.KeyboardModifier.MetaModifier),
        target=target_for_widget(widget),
    )


class QtKeyboardSource(QObject):
    """Application-wide key-down source with capture and bubble listener passes.

    Capture listeners run first. Bubble listeners run only when no capture
    listener stopped propagation. A prevented default consumes the Qt event.
    """

    def __init__(self, app: QApplication, *, on_error: Optional[ErrorCallback] = None) -> None:
        super().__init__(app)
        self._app = app
        self._on_error = on_error
        self._listeners: Dict[int, Tuple[bool, KeyListener]] = {}
        self._next_token = 0
        self._last_signature: Optional[Tuple[int, int, int]] = None
        app.installEventFilter(self)

    def add_listener(self, listener: KeyListener, *, capture: bool = False) -> Subscription:
        token = self._next_token
        self._next_token += 1
        self._listeners[token] = (capture, listener)
        label = "keyboard-capture" if capture else "keyboard"
        return Subscription(lambda: self._listeners.pop(token, None), label=label)

    def release(self) -> None:
        self._listeners.clear()
        self._app.removeEventFilter(self)

    def eventFilter(self, obj: QObject, event: QEvent) -> bool:  # noqa: N802 - Qt override
        if event.type() != QEvent.Type.KeyPress or not isinstance(event, QKeyEvent):
            return False
        # The same press is delivered to the window and then to the focus widget.
        signature = (event.timestamp(), event.key(), int(event.modifiers().value))
        if signature == self._last_signature:
            return False
        self._last_signature = signature
        key_event = convert_key_event(event, self._app.focusWidget())
        return self.deliver(key_event)

    def deliver(self, event: KeyEvent) -> bool:
        """Run both listener passes for ``event``; True when its default was prevented."""
        listeners: List[Tuple[bool, KeyListener]] = list(self._listeners.values())
        for capture, listener in listeners:
            if capture:
                self._invoke(listener, event)
                if event.propagation_stopped:
                    return event.default_prevented
        for capture, listener in listeners:
            if not capture:
                self._invoke(listener, event)
                if event.propagation_stopped:
                    break
        return event.default_prevented

    def _invoke(self, listener: KeyListener, event: KeyEvent) -> None:
        try:
            listener(event)
        except ConfigurationError as exc:
            _LOGGER.error("Key binding failed: %s", exc)
            if self._on_error is not None:
                self._on_error(exc)
        except Exception:
            _LOGGER.exception("Unhandled error in key listener")
