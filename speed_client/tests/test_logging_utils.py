from __future__ import annotations

import logging

from speed_client.logging_utils import (
    LOG_DIR_ENV_VAR,
    ReleaseLogLevelFilter,
    build_rotating_file_handler,
    configure_logging,
    resolve_log_level,
    resolve_logs_dir,
)


def test_env_override_wins(tmp_path, monkeypatch):
    monkeypatch.setenv(LOG_DIR_ENV_VAR, str(tmp_path / "custom"))
    assert resolve_logs_dir() == tmp_path / "custom" / "tabspeed"
    assert (tmp_path / "custom" / "tabspeed").is_dir()


def test_falls_back_to_xdg_state(tmp_path, monkeypatch):
    monkeypatch.delenv(LOG_DIR_ENV_VAR, raising=False)
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "state"))
    assert resolve_logs_dir() == tmp_path / "state" / "logs" / "tabspeed"


def test_rotating_handler_retention(tmp_path):
    handler = build_rotating_file_handler(tmp_path, "client.log", retention=3, max_bytes=1024)
    try:
        assert handler.backupCount == 2
        assert handler.maxBytes == 1024
    finally:
        handler.close()


def test_resolve_log_level():
    assert resolve_log_level(True) == logging.DEBUG
    assert resolve_log_level(False) == logging.INFO


def test_release_filter_promotes_debug():
    record = logging.LogRecord("TabSpeed.Test", logging.DEBUG, __file__, 1, "hello", None, None)
    assert ReleaseLogLevelFilter(release_mode=True).filter(record)
    assert record.levelno == logging.INFO
    assert record.levelname == "INFO"


def test_configure_logging_replaces_its_handler(tmp_path):
    logger = configure_logging(debug_enabled=True, log_dir=tmp_path)
    try:
        configure_logging(debug_enabled=False, log_dir=tmp_path)
        ours = [h for h in logger.handlers if getattr(h, "_tabspeed_handler", False)]
        assert len(ours) == 1
        assert logger.level == logging.INFO
        logging.getLogger("TabSpeed.Client.Test").info("written")
        ours[0].flush()
        assert "written" in (tmp_path / "tabspeed.log").read_text(encoding="utf-8")
    finally:
        for handler in list(logger.handlers):
            if getattr(handler, "_tabspeed_handler", False):
                logger.removeHandler(handler)
                handler.close()
