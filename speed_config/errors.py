from __future__ import annotations


class ConfigurationError(ValueError):
    """Raised when persisted configuration is corrupt or references unknown items."""
