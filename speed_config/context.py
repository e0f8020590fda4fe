"""Resolve the effective per-tab context and write mutations back to its owning layer.

Layers are consulted top-down: the tab's pin, the tab's override, the common
layer, and finally built-in defaults. Resolution never mutates the
configuration; :func:`commit_context` is the only path that writes context
fields back into it.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from speed_config.config_model import (
    CONTEXT_FIELDS,
    FILTER_SET_FIELDS,
    Configuration,
    FilterTarget,
    Pin,
    StateOption,
    default_context_layer,
)
from speed_config.filters import FilterValue, clamp, clamp_filter_values, default_filter_values


@dataclass
class EffectiveContext:
    """Derived, tab-scoped state. Handlers mutate it; ``commit_context`` persists it."""

    speed: float = 1.0
    enabled: bool = True
    element_fx: bool = False
    backdrop_fx: bool = False
    element_filter_values: List[FilterValue] = field(default_factory=default_filter_values)
    backdrop_filter_values: List[FilterValue] = field(default_factory=default_filter_values)
    element_query: str = "video"

    def as_layer(self) -> Dict[str, Any]:
        return {name: copy.deepcopy(getattr(self, name)) for name in CONTEXT_FIELDS}


def _layers(config: Configuration, tab_id: Optional[int]) -> List[Dict[str, Any]]:
    """Return the layers for ``tab_id`` ordered lowest to highest precedence."""
    layers = [default_context_layer(), config.common]
    if tab_id is not None:
        override = config.tab_overrides.get(tab_id)
        if override is not None:
            layers.append(override)
        pin = config.pins.get(tab_id)
        if pin is not None:
            layers.append(pin.ctx)
    return layers


def resolve(config: Configuration, tab_id: Optional[int]) -> EffectiveContext:
    merged: Dict[str, Any] = {}
    for layer in _layers(config, tab_id):
        for name in CONTEXT_FIELDS:
            if name in layer:
                merged[name] = layer[name]
    values = copy.deepcopy(merged)
    values["speed"] = clamp(config.speed_min, config.speed_max, float(values["speed"]))
    for name in FILTER_SET_FIELDS:
        values[name] = clamp_filter_values(values[name])
    return EffectiveContext(**values)


get_context = resolve


def get_pin(config: Configuration, tab_id: Optional[int]) -> Optional[Pin]:
    if tab_id is None:
        return None
    return config.pins.get(tab_id)


def apply_state(state: StateOption, current: bool) -> bool:
    if state == StateOption.TOGGLE:
        return not current
    return state == StateOption.ON


def set_pin(config: Configuration, state: StateOption, tab_id: int) -> Optional[Pin]:
    """Create or clear the tab's pin; a new pin snapshots the current context."""
    pin = config.pins.get(tab_id)
    want_pin = apply_state(state, pin is not None)
    if want_pin and pin is None:
        pin = Pin(tab_id, resolve(config, tab_id).as_layer())
        config.pins[tab_id] = pin
    elif not want_pin and pin is not None:
        del config.pins[tab_id]
        pin = None
    return pin


def commit_context(
    config: Configuration,
    tab_id: int,
    ctx: EffectiveContext,
    baseline: Optional[EffectiveContext] = None,
) -> List[str]:
    """Write changed fields of ``ctx`` back into the layer that owns each of them.

    A field counts as changed when it differs from ``baseline`` (a fresh
    resolution when omitted). The pin owns a field when it carries it;
    otherwise the tab override does, and it is created on first write.
    Returns the names of the fields written.
    """
    if baseline is None:
        baseline = resolve(config, tab_id)
    changed = [name for name in CONTEXT_FIELDS if getattr(ctx, name) != getattr(baseline, name)]
    pin = config.pins.get(tab_id)
    for name in changed:
        value = copy.deepcopy(getattr(ctx, name))
        if pin is not None and name in pin.ctx:
            pin.ctx[name] = value
        else:
            config.tab_overrides.setdefault(tab_id, {})[name] = value
    return changed


def conform_speed(speed: float, config: Configuration) -> float:
    return clamp(config.speed_min, config.speed_max, round(float(speed), 2))


def format_speed(speed: float, pinned: bool) -> str:
    label = f"{speed:.2f}"
    return f"{label} (pinned)" if pinned else label


def get_target_sets(target: FilterTarget, ctx: EffectiveContext) -> List[List[FilterValue]]:
    if target == FilterTarget.ELEMENT:
        return [ctx.element_filter_values]
    if target == FilterTarget.BACKDROP:
        return [ctx.backdrop_filter_values]
    return [ctx.element_filter_values, ctx.backdrop_filter_values]


def set_fx(target: FilterTarget, state: StateOption, ctx: EffectiveContext) -> None:
    if target == FilterTarget.ELEMENT:
        ctx.element_fx = apply_state(state, ctx.element_fx)
    elif target == FilterTarget.BACKDROP:
        ctx.backdrop_fx = apply_state(state, ctx.backdrop_fx)
    else:
        enabled = apply_state(state, ctx.element_fx or ctx.backdrop_fx)
        ctx.element_fx = enabled
        ctx.backdrop_fx = enabled


def reset_fx(target: FilterTarget, ctx: EffectiveContext) -> None:
    if target in (FilterTarget.ELEMENT, FilterTarget.BOTH):
        ctx.element_filter_values = default_filter_values()
    if target in (FilterTarget.BACKDROP, FilterTarget.BOTH):
        ctx.backdrop_filter_values = default_filter_values()


def flip_fx(ctx: EffectiveContext) -> None:
    ctx.element_fx, ctx.backdrop_fx = ctx.backdrop_fx, ctx.element_fx
    ctx.element_filter_values, ctx.backdrop_filter_values = ctx.backdrop_filter_values, ctx.element_filter_values


def format_fx_state(ctx: EffectiveContext) -> str:
    return f"{'on' if ctx.element_fx else 'off'} / {'on' if ctx.backdrop_fx else 'off'}"
