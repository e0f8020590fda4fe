from __future__ import annotations

import pytest

from speed_client.hotkeys import ElementTarget, HotkeyMatcher, KeyEvent, extract_hotkey, is_editable_target
from speed_config.config_model import CommandName, KeyBind, StateOption
from speed_config.keys import Hotkey, parse_hotkey


def _bind(bind_id, command, key, **kwargs):
    return KeyBind(id=bind_id, command=command, key=parse_hotkey(key), **kwargs)


BINDINGS = [
    _bind("up", CommandName.ADJUST_SPEED, "D", value_number=0.1),
    _bind("up-again", CommandName.ADJUST_SPEED, "D", value_number=0.2),
    _bind("state", CommandName.SET_STATE, "Q", greedy=True, value_state=StateOption.TOGGLE),
    _bind("seek", CommandName.SEEK, "X", if_media=True),
    _bind("off", CommandName.SET_SPEED, "S", enabled=False),
    _bind("grab", CommandName.SET_SPEED, "Ctrl+S", greedy=True),
]


def _ids(bindings):
    return [kb.id for kb in bindings]


def test_match_preserves_configured_order():
    matched = HotkeyMatcher().match(BINDINGS, KeyEvent("d"), enabled=True, has_media=False)
    assert _ids(matched) == ["up", "up-again"]


def test_modifiers_must_match_exactly():
    matcher = HotkeyMatcher()
    assert _ids(matcher.match(BINDINGS, KeyEvent("D", shift=True), enabled=True, has_media=False)) == []
    assert _ids(matcher.match(BINDINGS, KeyEvent("s", ctrl=True), enabled=True, has_media=False)) == ["grab"]


def test_disabled_bindings_and_media_gate():
    matcher = HotkeyMatcher()
    assert matcher.match(BINDINGS, KeyEvent("s"), enabled=True, has_media=False) == []
    assert matcher.match(BINDINGS, KeyEvent("x"), enabled=True, has_media=False) == []
    assert _ids(matcher.match(BINDINGS, KeyEvent("x"), enabled=True, has_media=True)) == ["seek"]


def test_only_state_bindings_match_while_disabled():
    matcher = HotkeyMatcher()
    assert matcher.match(BINDINGS, KeyEvent("d"), enabled=False, has_media=True) == []
    assert _ids(matcher.match(BINDINGS, KeyEvent("q"), enabled=False, has_media=False)) == ["state"]
    assert _ids(matcher.match_greedy(BINDINGS, KeyEvent("q"), enabled=False, has_media=False)) == ["state"]
    assert matcher.match_greedy(BINDINGS, KeyEvent("s", ctrl=True), enabled=False, has_media=False) == []


def test_greedy_pass_skips_non_greedy_bindings():
    matched = HotkeyMatcher().match_greedy(BINDINGS, KeyEvent("d"), enabled=True, has_media=True)
    assert matched == []


@pytest.mark.parametrize(
    "target",
    [ElementTarget("INPUT"), ElementTarget("textarea"), ElementTarget("DIV", is_content_editable=True)],
)
def test_editable_targets_never_match(target):
    event = KeyEvent("q", target=target)
    assert is_editable_target(target)
    assert HotkeyMatcher().match(BINDINGS, event, enabled=True, has_media=True) == []
    assert HotkeyMatcher().match_greedy(BINDINGS, event, enabled=True, has_media=True) == []


def test_extract_hotkey_ignores_bare_modifiers():
    assert extract_hotkey(KeyEvent("Shift", shift=True)) is None
    assert extract_hotkey(KeyEvent("Control", ctrl=True)) is None
    assert extract_hotkey(KeyEvent(" ")) == Hotkey("space")
    assert not is_editable_target(None)


def test_event_flags():
    event = KeyEvent("q")
    event.prevent_default()
    event.stop_immediate_propagation()
    assert event.default_prevented and event.propagation_stopped
