"""Typed model for the persisted TabSpeed configuration."""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from speed_config.errors import ConfigurationError
from speed_config.filters import default_filter_values, get_filter_info, parse_filter_values
from speed_config.keys import Hotkey, parse_hotkey

CONFIG_VERSION = 1
DEFAULT_SPEED_MIN = 0.07
DEFAULT_SPEED_MAX = 16.0
DEFAULT_POLL_RATE_MS = 1000
MIN_POLL_RATE_MS = 50

CONTEXT_FIELDS = (
    "speed",
    "enabled",
    "element_fx",
    "backdrop_fx",
    "element_filter_values",
    "backdrop_filter_values",
    "element_query",
)
FILTER_SET_FIELDS = ("element_filter_values", "backdrop_filter_values")

_LOGGER = logging.getLogger("TabSpeed.Config")


class CommandName(str, Enum):
    """Closed vocabulary of commands a key binding can trigger."""

    NOTHING = "nothing"
    ADJUST_SPEED = "adjustSpeed"
    SET_SPEED = "setSpeed"
    SET_PIN = "setPin"
    SET_STATE = "setState"
    SEEK = "seek"
    SET_PAUSE = "setPause"
    SET_MUTE = "setMute"
    SET_MARK = "setMark"
    SEEK_MARK = "seekMark"
    OPEN_URL = "openUrl"
    SET_FX = "setFx"
    RESET_FX = "resetFx"
    FLIP_FX = "flipFx"
    ADJUST_FILTER = "adjustFilter"
    SET_FILTER = "setFilter"
    CYCLE_FILTER_VALUE = "cycleFilterValue"


class StateOption(str, Enum):
    ON = "on"
    OFF = "off"
    TOGGLE = "toggle"


class FilterTarget(str, Enum):
    ELEMENT = "element"
    BACKDROP = "backdrop"
    BOTH = "both"


def _parse_enum(enum_cls, raw: object, label: str):
    try:
        return enum_cls(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Unknown {label} '{raw}'") from exc


@dataclass
class KeyBind:
    """One hotkey binding.

    Everything here is user-edited data except ``cycle_increment``, which the
    cycle command advances on every invocation and which persists with the
    binding.
    """

    id: str
    command: CommandName
    key: Hotkey
    enabled: bool = True
    greedy: bool = False
    if_media: bool = False
    value_number: Optional[float] = None
    value_string: Optional[str] = None
    value_state: StateOption = StateOption.TOGGLE
    value_cycle: Optional[List[float]] = None
    filter_option: Optional[str] = None
    filter_target: FilterTarget = FilterTarget.ELEMENT
    cycle_increment: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "KeyBind":
        bind_id = str(data.get("id") or "")
        if not bind_id:
            raise ConfigurationError(f"Key binding without id: {dict(data)!r}")
        command = _parse_enum(CommandName, data.get("command"), "command")
        filter_option = data.get("filter_option")
        if filter_option is not None:
            get_filter_info(str(filter_option))
        value_number = data.get("value_number")
        value_cycle = data.get("value_cycle")
        cycle_increment = data.get("cycle_increment")
        try:
            return cls(
                id=bind_id,
                command=command,
                key=parse_hotkey(data.get("key") or ""),
                enabled=bool(data.get("enabled", True)),
                greedy=bool(data.get("greedy", False)),
                if_media=bool(data.get("if_media", False)),
                value_number=None if value_number is None else float(value_number),
                value_string=None if data.get("value_string") is None else str(data.get("value_string")),
                value_state=_parse_enum(StateOption, data.get("value_state", "toggle"), "state"),
                value_cycle=None if value_cycle is None else [float(v) for v in value_cycle],
                filter_option=None if filter_option is None else str(filter_option),
                filter_target=_parse_enum(FilterTarget, data.get("filter_target", "element"), "filter target"),
                cycle_increment=None if cycle_increment is None else int(cycle_increment),
            )
        except ConfigurationError:
            raise
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid key binding '{bind_id}': {exc}") from exc

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "command": self.command.value,
            "key": self.key.to_string(),
            "enabled": self.enabled,
            "greedy": self.greedy,
            "if_media": self.if_media,
            "value_state": self.value_state.value,
            "filter_target": self.filter_target.value,
        }
        optional = {
            "value_number": self.value_number,
            "value_string": self.value_string,
            "value_cycle": list(self.value_cycle) if self.value_cycle is not None else None,
            "filter_option": self.filter_option,
            "cycle_increment": self.cycle_increment,
        }
        payload.update({name: value for name, value in optional.items() if value is not None})
        return payload


@dataclass
class Pin:
    """Tab-scoped layer that wins over the tab's own override."""

    tab_id: int
    ctx: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Configuration:
    """Persisted root: global defaults, bindings, per-tab overrides, and pins."""

    common: Dict[str, Any] = field(default_factory=lambda: default_context_layer())
    keybinds: List[KeyBind] = field(default_factory=list)
    tab_overrides: Dict[int, Dict[str, Any]] = field(default_factory=dict)
    pins: Dict[int, Pin] = field(default_factory=dict)
    speed_min: float = DEFAULT_SPEED_MIN
    speed_max: float = DEFAULT_SPEED_MAX
    hide_indicator: bool = False
    use_polling: bool = False
    poll_rate: int = DEFAULT_POLL_RATE_MS
    version: int = CONFIG_VERSION

    def find_keybind(self, bind_id: str) -> Optional[KeyBind]:
        return next((kb for kb in self.keybinds if kb.id == bind_id), None)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Configuration":
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"Configuration must be a mapping, got {type(data).__name__}")
        version = data.get("version", CONFIG_VERSION)
        if version != CONFIG_VERSION:
            _LOGGER.warning("Unknown configuration version %s; parsing best-effort", version)
        try:
            speed_min = float(data.get("speed_min", DEFAULT_SPEED_MIN))
            speed_max = float(data.get("speed_max", DEFAULT_SPEED_MAX))
            poll_rate = int(data.get("poll_rate", DEFAULT_POLL_RATE_MS))
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid numeric setting: {exc}") from exc
        if speed_min > speed_max:
            raise ConfigurationError(f"speed_min {speed_min} exceeds speed_max {speed_max}")
        common = default_context_layer()
        common.update(parse_context_layer(data.get("common") or {}))
        return cls(
            common=common,
            keybinds=[KeyBind.from_dict(entry) for entry in data.get("keybinds") or []],
            tab_overrides={
                _parse_tab_id(tab): parse_context_layer(layer)
                for tab, layer in (data.get("tab_overrides") or {}).items()
            },
            pins={
                _parse_tab_id(tab): Pin(_parse_tab_id(tab), parse_context_layer(layer))
                for tab, layer in (data.get("pins") or {}).items()
            },
            speed_min=speed_min,
            speed_max=speed_max,
            hide_indicator=bool(data.get("hide_indicator", False)),
            use_polling=bool(data.get("use_polling", False)),
            poll_rate=max(MIN_POLL_RATE_MS, poll_rate),
            version=int(version) if isinstance(version, int) else CONFIG_VERSION,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "speed_min": self.speed_min,
            "speed_max": self.speed_max,
            "hide_indicator": self.hide_indicator,
            "use_polling": self.use_polling,
            "poll_rate": self.poll_rate,
            "common": dump_context_layer(self.common),
            "tab_overrides": {str(tab): dump_context_layer(layer) for tab, layer in self.tab_overrides.items()},
            "pins": {str(tab): dump_context_layer(pin.ctx) for tab, pin in self.pins.items()},
            "keybinds": [kb.to_dict() for kb in self.keybinds],
        }

    def clone(self) -> "Configuration":
        return copy.deepcopy(self)


def _parse_tab_id(raw: object) -> int:
    try:
        return int(raw)  # type: ignore[call-overload]
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid tab id '{raw}'") from exc


def default_context_layer() -> Dict[str, Any]:
    return {
        "speed": 1.0,
        "enabled": True,
        "element_fx": False,
        "backdrop_fx": False,
        "element_filter_values": default_filter_values(),
        "backdrop_filter_values": default_filter_values(),
        "element_query": "video",
    }


def parse_context_layer(raw: object) -> Dict[str, Any]:
    """Parse a (possibly partial) context layer, keeping only known fields."""
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"Context layer must be a mapping, got {type(raw).__name__}")
    layer: Dict[str, Any] = {}
    for name in CONTEXT_FIELDS:
        if name not in raw:
            continue
        value = raw[name]
        if name in FILTER_SET_FIELDS:
            layer[name] = parse_filter_values(value)
        elif name == "speed":
            try:
                layer[name] = float(value)
            except (TypeError, ValueError) as exc:
                raise ConfigurationError(f"Invalid speed {value!r}") from exc
        elif name == "element_query":
            layer[name] = str(value or "")
        else:
            layer[name] = bool(value)
    return layer


def dump_context_layer(layer: Mapping[str, Any]) -> Dict[str, Any]:
    payload: Dict[str, Any] = {}
    for name in CONTEXT_FIELDS:
        if name not in layer:
            continue
        value = layer[name]
        if name in FILTER_SET_FIELDS:
            payload[name] = [entry.to_dict() for entry in value]
        else:
            payload[name] = value
    return payload


def default_keybinds() -> List[KeyBind]:
    def bind(bind_id: str, command: CommandName, key: str, **kwargs: Any) -> KeyBind:
        return KeyBind(id=bind_id, command=command, key=parse_hotkey(key), **kwargs)

    return [
        bind("speed-down", CommandName.ADJUST_SPEED, "A", value_number=-0.1),
        bind("speed-up", CommandName.ADJUST_SPEED, "D", value_number=0.1),
        bind("speed-reset", CommandName.SET_SPEED, "S", value_number=1.0),
        bind("speed-preset", CommandName.SET_SPEED, "R", value_number=1.8),
        bind("seek-back", CommandName.SEEK, "Z", value_number=-10.0, if_media=True),
        bind("seek-forward", CommandName.SEEK, "X", value_number=10.0, if_media=True),
        bind("pause", CommandName.SET_PAUSE, "C", if_media=True),
        bind("mute", CommandName.SET_MUTE, "M", if_media=True),
        bind("mark", CommandName.SET_MARK, "Shift+W", value_string="mark"),
        bind("seek-mark", CommandName.SEEK_MARK, "W", value_string="mark"),
        bind("pin", CommandName.SET_PIN, "Shift+P"),
        bind("state", CommandName.SET_STATE, "Q", greedy=True),
        bind("fx", CommandName.SET_FX, "F", filter_target=FilterTarget.ELEMENT),
        bind("fx-reset", CommandName.RESET_FX, "Shift+F", filter_target=FilterTarget.BOTH),
        bind(
            "grayscale-cycle",
            CommandName.CYCLE_FILTER_VALUE,
            "G",
            filter_option="grayscale",
            value_cycle=[0.0, 1.0],
        ),
    ]


def default_config() -> Configuration:
    return Configuration(keybinds=default_keybinds())
