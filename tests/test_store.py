from __future__ import annotations

import json
import os

import pytest

from speed_config.config_model import Configuration, default_config
from speed_config.errors import ConfigurationError
from speed_config.store import CONFIG_ENV_VAR, ConfigStore, parse_changes, resolve_config_path


def test_missing_file_loads_defaults(tmp_path):
    store = ConfigStore(tmp_path / "config.json")
    config = store.load_or_default()
    assert [kb.id for kb in config.keybinds] == [kb.id for kb in default_config().keybinds]


def test_invalid_json_falls_back_to_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    config = ConfigStore(path).load_or_default()
    assert config.keybinds


def test_invalid_payload_raises(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"keybinds": [{"id": "x", "command": "warp", "key": "A"}]}), encoding="utf-8")
    with pytest.raises(ConfigurationError):
        ConfigStore(path).load_or_default()


def test_persist_writes_atomically_and_notifies(tmp_path):
    path = tmp_path / "nested" / "config.json"
    store = ConfigStore(path)
    received = []
    store.subscribe(received.append)

    config = default_config()
    config.tab_overrides[2] = {"speed": 1.5}
    store.persist(config)

    assert not path.with_suffix(".json.tmp").exists()
    on_disk = json.loads(path.read_text(encoding="utf-8"))
    assert on_disk["tab_overrides"] == {"2": {"speed": 1.5}}
    assert len(received) == 1
    assert received[0]["config"]["new_value"] == on_disk
    assert ConfigStore(path).load_or_default().tab_overrides == {2: {"speed": 1.5}}


def test_post_defers_notifications(tmp_path):
    queued = []
    store = ConfigStore(tmp_path / "config.json", post=queued.append)
    received = []
    store.subscribe(received.append)
    store.persist(default_config())
    assert received == []
    for callback in queued:
        callback()
    assert len(received) == 1


def test_unsubscribe_stops_notifications(tmp_path):
    store = ConfigStore(tmp_path / "config.json")
    received = []
    subscription = store.subscribe(received.append)
    subscription.unsubscribe()
    subscription.unsubscribe()
    store.persist(default_config())
    assert received == []
    assert not subscription.active


def test_check_for_changes_ignores_own_writes_and_sees_external_ones(tmp_path):
    path = tmp_path / "config.json"
    store = ConfigStore(path)
    received = []
    store.subscribe(received.append)
    store.persist(default_config())
    received.clear()

    assert store.check_for_changes() is False

    payload = default_config().to_dict()
    payload["hide_indicator"] = True
    path.write_text(json.dumps(payload), encoding="utf-8")
    stat = path.stat()
    os.utime(path, (stat.st_atime, stat.st_mtime + 5))

    assert store.check_for_changes() is True
    assert received[0]["config"]["new_value"]["hide_indicator"] is True
    assert store.check_for_changes() is False


def test_parse_changes():
    assert parse_changes(None) is None
    assert parse_changes({}) is None
    assert parse_changes({"config": {"new_value": None}}) is None

    config = default_config()
    parsed = parse_changes({"config": {"new_value": config.to_dict()}})
    assert isinstance(parsed, Configuration)
    assert parsed.keybinds == config.keybinds

    cloned = parse_changes({"config": {"new_value": config}})
    assert cloned is not config
    assert cloned.keybinds == config.keybinds

    with pytest.raises(ConfigurationError):
        parse_changes({"config": {"new_value": {"speed_min": 5, "speed_max": 1}}})


def test_resolve_config_path_prefers_explicit_then_env(tmp_path, monkeypatch):
    monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "env.json"))
    assert resolve_config_path(tmp_path / "explicit.json") == tmp_path / "explicit.json"
    assert resolve_config_path() == tmp_path / "env.json"
    monkeypatch.delenv(CONFIG_ENV_VAR)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    assert resolve_config_path() == tmp_path / "xdg" / "tabspeed" / "config.json"
