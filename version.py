"""Version metadata and dev-mode detection for TabSpeed."""
from __future__ import annotations

import os
from typing import Optional

__version__ = "0.4.0"

DEV_MODE_ENV_VAR = "TABSPEED_DEV_MODE"


def is_dev_build(version: Optional[str] = None) -> bool:
    """Return True when running a ``-dev`` version or when the env flag is set.

    The env var wins in both directions so a dev build can be forced into
    release logging and vice versa.
    """
    value = os.getenv(DEV_MODE_ENV_VAR)
    if value is not None:
        token = value.strip().lower()
        if token in {"1", "true", "yes", "on"}:
            return True
        if token in {"0", "false", "no", "off"}:
            return False
    candidate = version if version is not None else __version__
    return "-dev" in str(candidate or "").lower()
