"""JSON-backed configuration store with a change feed."""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

from speed_config.config_model import Configuration, default_config
from speed_config.errors import ConfigurationError
from speed_config.subscription import Subscription

CONFIG_ENV_VAR = "TABSPEED_CONFIG"
CONFIG_FILENAME = "config.json"

StorageChanges = Mapping[str, Mapping[str, Any]]
ChangeListener = Callable[[StorageChanges], None]
PostFn = Callable[[Callable[[], None]], None]

_LOGGER = logging.getLogger("TabSpeed.Config.Store")


def _post_immediately(callback: Callable[[], None]) -> None:
    callback()


def resolve_config_path(explicit: Optional[Path] = None) -> Path:
    if explicit is not None:
        return Path(explicit).expanduser()
    env_override = os.environ.get(CONFIG_ENV_VAR)
    if env_override:
        return Path(env_override).expanduser()
    config_home = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return config_home / "tabspeed" / CONFIG_FILENAME


class ConfigStore:
    """Loads, persists, and broadcasts the configuration.

    Every successful ``persist`` and every external write picked up by
    ``check_for_changes`` is delivered to subscribers as
    ``{"config": {"new_value": <mapping>}}`` through ``post``.
    """

    def __init__(self, path: Optional[Path] = None, *, post: Optional[PostFn] = None) -> None:
        self._path = resolve_config_path(path)
        self._post = post or _post_immediately
        self._listeners: Dict[int, ChangeListener] = {}
        self._next_token = 0
        self._last_seen: Optional[str] = None
        self._last_mtime: Optional[float] = None

    @property
    def path(self) -> Path:
        return self._path

    def load_or_default(self) -> Configuration:
        raw = self._read_text()
        if raw is None:
            _LOGGER.info("No configuration at %s; using defaults", self._path)
            return default_config()
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            _LOGGER.warning("Configuration at %s is not valid JSON (%s); using defaults", self._path, exc)
            return default_config()
        config = Configuration.from_dict(data)
        self._remember(raw)
        return config

    def persist(self, config: Configuration) -> None:
        payload = config.to_dict()
        text = json.dumps(payload, indent=2)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(text, encoding="utf-8")
        os.replace(tmp_path, self._path)
        self._remember(text)
        _LOGGER.debug("Persisted configuration to %s (%d keybinds)", self._path, len(config.keybinds))
        self._notify(payload)

    persist_config = persist

    def check_for_changes(self) -> bool:
        """Notify subscribers when the file was rewritten by someone else."""
        try:
            mtime = self._path.stat().st_mtime
        except FileNotFoundError:
            return False
        except OSError as exc:
            _LOGGER.debug("Unable to stat %s: %s", self._path, exc)
            return False
        if mtime == self._last_mtime:
            return False
        raw = self._read_text()
        self._last_mtime = mtime
        if raw is None or raw == self._last_seen:
            return False
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            _LOGGER.warning("Ignoring external configuration write at %s: %s", self._path, exc)
            return False
        self._last_seen = raw
        _LOGGER.debug("External configuration change detected at %s", self._path)
        self._notify(data)
        return True

    def subscribe(self, listener: ChangeListener) -> Subscription:
        token = self._next_token
        self._next_token += 1
        self._listeners[token] = listener
        return Subscription(lambda: self._listeners.pop(token, None), label="config-store")

    def _notify(self, payload: Mapping[str, Any]) -> None:
        changes: StorageChanges = {"config": {"new_value": payload}}
        listeners: List[ChangeListener] = list(self._listeners.values())
        for listener in listeners:
            self._post(lambda listener=listener: listener(changes))

    def _read_text(self) -> Optional[str]:
        try:
            return self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            _LOGGER.warning("Unable to read configuration %s: %s", self._path, exc)
            return None

    def _remember(self, text: str) -> None:
        self._last_seen = text
        try:
            self._last_mtime = self._path.stat().st_mtime
        except OSError:
            self._last_mtime = None


def parse_changes(changes: Optional[StorageChanges]) -> Optional[Configuration]:
    """Extract the new configuration from a change notification, if any."""
    if not changes:
        return None
    entry = changes.get("config")
    if not entry:
        return None
    new_value = entry.get("new_value")
    if not new_value:
        return None
    if isinstance(new_value, Configuration):
        return new_value.clone()
    try:
        return Configuration.from_dict(new_value)
    except ConfigurationError:
        _LOGGER.error("Rejected configuration change: invalid payload")
        raise
