from __future__ import annotations

import logging
import os
import tempfile
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_DIR_ENV_VAR = "TABSPEED_LOG_DIR"
LOGGER_ROOT = "TabSpeed"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


class ReleaseLogLevelFilter(logging.Filter):
    """Promote debug logs to INFO in release builds so diagnostics stay visible."""

    def __init__(self, release_mode: bool) -> None:
        super().__init__()
        self._release_mode = release_mode

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - logging shim
        if self._release_mode and record.levelno == logging.DEBUG:
            record.levelno = logging.INFO
            record.levelname = "INFO"
        return True


def resolve_logs_dir(log_dir_name: str = "tabspeed") -> Path:
    """
    Resolve the directory to store TabSpeed logs.

    Strategy:
    - Use TABSPEED_LOG_DIR if set.
    - Fall back to XDG state/cache locations, then `cwd/logs/<log_dir_name>`.
    - Final fallback: tempdir/<log_dir_name>.
    """
    candidates = []

    env_override = os.environ.get(LOG_DIR_ENV_VAR)
    if env_override:
        candidates.append(Path(env_override).expanduser())

    state_home = Path(os.environ.get("XDG_STATE_HOME", Path.home() / ".local" / "state"))
    cache_home = Path(os.environ.get("XDG_CACHE_HOME", Path.home() / ".cache"))
    candidates.append(state_home / "logs")
    candidates.append(cache_home / "logs")
    candidates.append(Path.cwd() / "logs")

    for base in candidates:
        target = base / log_dir_name
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError:
            continue
        return target

    temp_fallback = Path(tempfile.gettempdir()) / log_dir_name
    temp_fallback.mkdir(parents=True, exist_ok=True)
    return temp_fallback


def build_rotating_file_handler(
    log_dir: Path,
    filename: str,
    *,
    retention: int = 5,
    max_bytes: int = 512 * 1024,
    formatter: Optional[logging.Formatter] = None,
) -> logging.Handler:
    """Construct a rotating file handler; ``retention`` counts the live file too."""
    retention = max(1, retention)
    backup_count = max(0, retention - 1)
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / filename,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    if formatter is not None:
        handler.setFormatter(formatter)
    return handler


def resolve_log_level(debug_enabled: bool) -> int:
    return logging.DEBUG if debug_enabled else logging.INFO


def configure_logging(
    *,
    debug_enabled: bool,
    log_dir: Optional[Path] = None,
    filename: str = "tabspeed.log",
    retention: int = 5,
) -> logging.Logger:
    """Attach a rotating file handler to the ``TabSpeed`` logger tree.

    Repeated calls replace the previously attached handler.
    """
    logger = logging.getLogger(LOGGER_ROOT)
    logger.setLevel(resolve_log_level(debug_enabled))
    for existing in list(logger.handlers):
        if getattr(existing, "_tabspeed_handler", False):
            logger.removeHandler(existing)
            existing.close()
    for existing in list(logger.filters):
        if isinstance(existing, ReleaseLogLevelFilter):
            logger.removeFilter(existing)

    target_dir = log_dir if log_dir is not None else resolve_logs_dir()
    handler = build_rotating_file_handler(
        target_dir,
        filename,
        retention=retention,
        formatter=logging.Formatter(LOG_FORMAT),
    )
    handler._tabspeed_handler = True  # type: ignore[attr-defined]
    handler.addFilter(ReleaseLogLevelFilter(release_mode=not debug_enabled))
    logger.addHandler(handler)
    return logger
