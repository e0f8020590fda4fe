"""Keyboard events and the two-pass hotkey matcher."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol, Sequence

from speed_config.config_model import CommandName, KeyBind
from speed_config.keys import MODIFIER_KEYS, Hotkey, normalize_key
from speed_config.subscription import Subscription

EDITABLE_TAGS = frozenset({"INPUT", "TEXTAREA"})


class EventTarget(Protocol):
    tag_name: str
    is_content_editable: bool


@dataclass
class ElementTarget:
    """Plain event target used by sources that have no richer element object."""

    tag_name: str = "BODY"
    is_content_editable: bool = False


@dataclass
class KeyEvent:
    """Key-down event as delivered to the capture and bubble listeners."""

    key: str
    ctrl: bool = False
    alt: bool = False
    shift: bool = False
    meta: bool = False
    target: Optional[EventTarget] = field(default_factory=ElementTarget)
    default_prevented: bool = False
    propagation_stopped: bool = False

    def prevent_default(self) -> None:
        self.default_prevented = True

    def stop_immediate_propagation(self) -> None:
        self.propagation_stopped = True


KeyListener = Callable[[KeyEvent], None]


class KeyboardSource(Protocol):
    def add_listener(self, listener: KeyListener, *, capture: bool = False) -> Subscription: ...


def extract_hotkey(event: KeyEvent) -> Optional[Hotkey]:
    """Normalised trigger for ``event``; None for bare modifier presses."""
    key = normalize_key(event.key)
    if not key or key in MODIFIER_KEYS:
        return None
    return Hotkey(key=key, ctrl=event.ctrl, alt=event.alt, shift=event.shift, meta=event.meta)


def is_editable_target(target: Optional[EventTarget]) -> bool:
    if target is None:
        return False
    tag = str(getattr(target, "tag_name", "") or "").upper()
    return tag in EDITABLE_TAGS or bool(getattr(target, "is_content_editable", False))


class HotkeyMatcher:
    """Selects the bindings triggered by a key event.

    While the system is disabled only state-toggle bindings are considered, in
    both passes.
    """

    def match(
        self,
        bindings: Sequence[KeyBind],
        event: KeyEvent,
        *,
        enabled: bool,
        has_media: bool,
    ) -> List[KeyBind]:
        return self._match(bindings, event, enabled=enabled, has_media=has_media, greedy_only=False)

    def match_greedy(
        self,
        bindings: Sequence[KeyBind],
        event: KeyEvent,
        *,
        enabled: bool,
        has_media: bool,
    ) -> List[KeyBind]:
        return self._match(bindings, event, enabled=enabled, has_media=has_media, greedy_only=True)

    def _match(
        self,
        bindings: Sequence[KeyBind],
        event: KeyEvent,
        *,
        enabled: bool,
        has_media: bool,
        greedy_only: bool,
    ) -> List[KeyBind]:
        if is_editable_target(event.target):
            return []
        hotkey = extract_hotkey(event)
        if hotkey is None:
            return []
        matched: List[KeyBind] = []
        for binding in bindings:
            if greedy_only and not binding.greedy:
                continue
            if not enabled and binding.command != CommandName.SET_STATE:
                continue
            if not binding.enabled:
                continue
            if binding.key != hotkey:
                continue
            if binding.if_media and not has_media:
                continue
            matched.append(binding)
        return matched
