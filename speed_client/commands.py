"""Command handlers for key bindings.

Each handler receives ``(binding, config, tab_id, pin, ctx)``. Handlers mutate
``ctx`` in place (the caller commits it afterwards) and may ask the indicator
to show a short notification.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from speed_client.media import MediaMarks, set_media_current_time, set_media_mute, set_media_pause
from speed_client.notifications import NotificationSink
from speed_client.tab_shim import TabShim
from speed_config.config_model import CommandName, Configuration, KeyBind, Pin, StateOption
from speed_config.context import (
    EffectiveContext,
    apply_state,
    conform_speed,
    flip_fx,
    format_fx_state,
    format_speed,
    get_context,
    get_pin,
    get_target_sets,
    reset_fx,
    set_fx,
    set_pin,
)
from speed_config.errors import ConfigurationError
from speed_config.filters import FilterInfo, FilterValue, format_number, get_filter_info

DEFAULT_SPEED_DELTA = 0.1
DEFAULT_SPEED = 1.0
DEFAULT_SEEK_SECONDS = 10.0
DEFAULT_CYCLE = (0.0, 1.0)

_LOGGER = logging.getLogger("TabSpeed.Client.Commands")

Handler = Callable[[KeyBind, Configuration, int, Optional[Pin], EffectiveContext], None]
MediaFn = Callable[[], List[object]]


class CommandDispatcher:
    """Maps every :class:`CommandName` to exactly one handler."""

    def __init__(
        self,
        *,
        sink: NotificationSink,
        media_fn: MediaFn,
        tab_shim: TabShim,
        marks: Optional[MediaMarks] = None,
    ) -> None:
        self._sink = sink
        self._media_fn = media_fn
        self._tab_shim = tab_shim
        self._marks = marks or MediaMarks()
        self._handlers: Dict[CommandName, Handler] = {
            CommandName.NOTHING: self._nothing,
            CommandName.ADJUST_SPEED: self._adjust_speed,
            CommandName.SET_SPEED: self._set_speed,
            CommandName.SET_PIN: self._set_pin,
            CommandName.SET_STATE: self._set_state,
            CommandName.SEEK: self._seek,
            CommandName.SET_PAUSE: self._set_pause,
            CommandName.SET_MUTE: self._set_mute,
            CommandName.SET_MARK: self._set_mark,
            CommandName.SEEK_MARK: self._seek_mark,
            CommandName.OPEN_URL: self._open_url,
            CommandName.SET_FX: self._set_fx,
            CommandName.RESET_FX: self._reset_fx,
            CommandName.FLIP_FX: self._flip_fx,
            CommandName.ADJUST_FILTER: self._adjust_filter,
            CommandName.SET_FILTER: self._set_filter,
            CommandName.CYCLE_FILTER_VALUE: self._cycle_filter_value,
        }
        missing = [name.value for name in CommandName if name not in self._handlers]
        if missing:
            raise RuntimeError(f"Commands without a handler: {', '.join(missing)}")

    @property
    def marks(self) -> MediaMarks:
        return self._marks

    def dispatch(
        self,
        binding: KeyBind,
        config: Configuration,
        tab_id: int,
        pin: Optional[Pin],
        ctx: EffectiveContext,
    ) -> None:
        handler = self._handlers.get(binding.command)
        if handler is None:
            raise ConfigurationError(f"Key binding '{binding.id}' has unknown command '{binding.command}'")
        _LOGGER.debug("Dispatching %s for binding %s (tab=%s)", binding.command.value, binding.id, tab_id)
        handler(binding, config, tab_id, pin, ctx)

    # Notifications ------------------------------------------------------

    def _show(self, config: Configuration, text: str) -> None:
        if config.hide_indicator:
            return
        self._sink.show(text)

    def _show_small(self, config: Configuration, text: str) -> None:
        if config.hide_indicator:
            return
        self._sink.show_small(text)

    # Speed and state ------------------------------------------------------

    def _nothing(self, binding, config, tab_id, pin, ctx) -> None:
        return None

    def _adjust_speed(self, binding, config, tab_id, pin, ctx) -> None:
        delta = binding.value_number if binding.value_number is not None else DEFAULT_SPEED_DELTA
        ctx.speed = conform_speed(ctx.speed + delta, config)
        self._show(config, format_speed(ctx.speed, pin is not None))

    def _set_speed(self, binding, config, tab_id, pin, ctx) -> None:
        value = binding.value_number if binding.value_number is not None else DEFAULT_SPEED
        ctx.speed = conform_speed(value, config)
        self._show(config, format_speed(ctx.speed, pin is not None))

    def _set_pin(self, binding, config, tab_id, pin, ctx) -> None:
        set_pin(config, binding.value_state, tab_id)
        new_pin = get_pin(config, tab_id)
        self._show(config, format_speed(get_context(config, tab_id).speed, new_pin is not None))

    def _set_state(self, binding, config, tab_id, pin, ctx) -> None:
        ctx.enabled = apply_state(binding.value_state, ctx.enabled)
        self._show_small(config, "on" if ctx.enabled else "off")

    # Media ------------------------------------------------------------------

    def _seek(self, binding, config, tab_id, pin, ctx) -> None:
        offset = binding.value_number if binding.value_number is not None else DEFAULT_SEEK_SECONDS
        set_media_current_time(self._media_fn(), offset, True)

    def _set_pause(self, binding, config, tab_id, pin, ctx) -> None:
        set_media_pause(self._media_fn(), binding.value_state)

    def _set_mute(self, binding, config, tab_id, pin, ctx) -> None:
        set_media_mute(self._media_fn(), binding.value_state)

    def _set_mark(self, binding, config, tab_id, pin, ctx) -> None:
        name = binding.value_string or ""
        placed = self._marks.set_mark(self._media_fn(), name)
        if not placed:
            self._show_small(config, "no media")
        else:
            self._show_small(config, f'setting "{name}"')

    def _seek_mark(self, binding, config, tab_id, pin, ctx) -> None:
        name = binding.value_string or ""
        if self._marks.seek_mark(self._media_fn(), name):
            return
        # An unset mark is placed at the current position instead.
        self._set_mark(binding, config, tab_id, pin, ctx)

    def _open_url(self, binding, config, tab_id, pin, ctx) -> None:
        url = (binding.value_string or "").strip()
        if not url:
            _LOGGER.debug("Binding %s has no URL to open", binding.id)
            return
        self._tab_shim.request_create_tab(url)

    # Filters ----------------------------------------------------------------

    def _set_fx(self, binding, config, tab_id, pin, ctx) -> None:
        set_fx(binding.filter_target, binding.value_state, ctx)
        self._show_small(config, format_fx_state(ctx))

    def _reset_fx(self, binding, config, tab_id, pin, ctx) -> None:
        reset_fx(binding.filter_target, ctx)
        self._show_small(config, "reset")

    def _flip_fx(self, binding, config, tab_id, pin, ctx) -> None:
        flip_fx(ctx)
        self._show_small(config, format_fx_state(ctx))

    def _adjust_filter(self, binding, config, tab_id, pin, ctx) -> None:
        info = self._filter_info(binding)
        delta = binding.value_number if binding.value_number is not None else info.large_step
        self._write_filter(binding, config, info, ctx, lambda current: current + delta)

    def _set_filter(self, binding, config, tab_id, pin, ctx) -> None:
        info = self._filter_info(binding)
        value = binding.value_number if binding.value_number is not None else info.default
        self._write_filter(binding, config, info, ctx, lambda current: value)

    def _cycle_filter_value(self, binding, config, tab_id, pin, ctx) -> None:
        info = self._filter_info(binding)
        cycle = list(binding.value_cycle) if binding.value_cycle else list(DEFAULT_CYCLE)
        increment = (binding.cycle_increment or 0) + 1
        value = cycle[increment % len(cycle)]
        binding.cycle_increment = increment
        self._write_filter(binding, config, info, ctx, lambda current: value)

    def _write_filter(
        self,
        binding: KeyBind,
        config: Configuration,
        info: FilterInfo,
        ctx: EffectiveContext,
        compute: Callable[[float], float],
    ) -> None:
        set_fx(binding.filter_target, StateOption.ON, ctx)
        new_value: Optional[float] = None
        for value_set in get_target_sets(binding.filter_target, ctx):
            entry = self._find_entry(value_set, binding)
            new_value = info.clamp(compute(entry.value))
            entry.value = new_value
        if new_value is not None:
            self._show_small(config, f"{info.name} = {format_number(new_value)}")

    @staticmethod
    def _filter_info(binding: KeyBind) -> FilterInfo:
        if not binding.filter_option:
            raise ConfigurationError(f"Key binding '{binding.id}' has no filter option")
        return get_filter_info(binding.filter_option)

    @staticmethod
    def _find_entry(value_set: List[FilterValue], binding: KeyBind) -> FilterValue:
        for entry in value_set:
            if entry.filter == binding.filter_option:
                return entry
        raise ConfigurationError(
            f"Filter '{binding.filter_option}' missing from value set (binding '{binding.id}')"
        )
