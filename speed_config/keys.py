"""Hotkey triggers: parsing, normalisation, and comparison."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Union

from speed_config.errors import ConfigurationError

_MODIFIER_ALIASES = {
    "ctrl": "ctrl",
    "control": "ctrl",
    "alt": "alt",
    "option": "alt",
    "shift": "shift",
    "meta": "meta",
    "cmd": "meta",
    "command": "meta",
    "super": "meta",
    "win": "meta",
}

_KEY_ALIASES = {
    " ": "space",
    "spacebar": "space",
    "esc": "escape",
    "left": "arrowleft",
    "right": "arrowright",
    "up": "arrowup",
    "down": "arrowdown",
    "del": "delete",
    "return": "enter",
    "plus": "+",
}

# Bare modifier presses never form a trigger on their own.
MODIFIER_KEYS = frozenset({"control", "ctrl", "alt", "shift", "meta", "os", "altgraph"})

HotkeyLike = Union["Hotkey", str, Mapping[str, object]]


@dataclass(frozen=True)
class Hotkey:
    """Normalised trigger: lower-cased key plus modifier flags."""

    key: str
    ctrl: bool = False
    alt: bool = False
    shift: bool = False
    meta: bool = False

    def to_string(self) -> str:
        parts = [name.capitalize() for name in ("ctrl", "alt", "shift", "meta") if getattr(self, name)]
        parts.append(self.key if len(self.key) == 1 else self.key.capitalize())
        return "+".join(parts)


def normalize_key(key: str) -> str:
    raw = str(key or "")
    if raw == " ":
        return "space"
    token = raw.strip().lower()
    return _KEY_ALIASES.get(token, token)


def parse_hotkey(value: HotkeyLike) -> Hotkey:
    """Accept ``"Ctrl+Shift+A"``, a mapping with ``key`` and modifier flags, or a Hotkey."""
    if isinstance(value, Hotkey):
        return value
    if isinstance(value, Mapping):
        key = normalize_key(str(value.get("key") or ""))
        if not key:
            raise ConfigurationError(f"Hotkey is missing a key: {dict(value)!r}")
        return Hotkey(
            key=key,
            ctrl=bool(value.get("ctrl") or value.get("ctrlKey")),
            alt=bool(value.get("alt") or value.get("altKey")),
            shift=bool(value.get("shift") or value.get("shiftKey")),
            meta=bool(value.get("meta") or value.get("metaKey")),
        )
    text = str(value or "").strip()
    if not text:
        raise ConfigurationError("Hotkey cannot be empty")
    if text == "+":
        return Hotkey("+")
    # A trailing "++" means the key itself is "+".
    tokens = text[:-2].split("+") + ["+"] if text.endswith("++") else text.split("+")
    tokens = [token for token in tokens if token.strip() or token == " "]
    flags = {"ctrl": False, "alt": False, "shift": False, "meta": False}
    key = ""
    for token in tokens:
        modifier = _MODIFIER_ALIASES.get(token.strip().lower())
        if modifier is not None and len(tokens) > 1:
            flags[modifier] = True
            continue
        if key:
            raise ConfigurationError(f"Hotkey '{text}' names more than one key")
        key = normalize_key(token)
    if not key:
        raise ConfigurationError(f"Hotkey '{text}' has no key")
    return Hotkey(key=key, **flags)


def compare_hotkeys(left: HotkeyLike, right: HotkeyLike) -> bool:
    return parse_hotkey(left) == parse_hotkey(right)
