"""Configuration model, context resolution, and persistence for TabSpeed."""
from __future__ import annotations

from .config_model import (
    CommandName,
    Configuration,
    FilterTarget,
    KeyBind,
    Pin,
    StateOption,
    default_config,
)
from .context import EffectiveContext, commit_context, get_pin, resolve
from .errors import ConfigurationError
from .store import ConfigStore

__all__ = [
    "CommandName",
    "ConfigStore",
    "Configuration",
    "ConfigurationError",
    "EffectiveContext",
    "FilterTarget",
    "KeyBind",
    "Pin",
    "StateOption",
    "commit_context",
    "default_config",
    "get_pin",
    "resolve",
]
