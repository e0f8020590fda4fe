from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from PyQt6.QtWidgets import QApplication, QLabel, QMainWindow, QVBoxLayout, QWidget

from speed_client.element_query import ElementDocument, build_query_factory
from speed_client.logging_utils import configure_logging
from speed_client.manager import Manager
from speed_client.qt_bridge import QtKeyboardSource, QtScheduler
from speed_client.qt_indicator import QtIndicator
from speed_client.qt_media import QtMediaElement
from speed_client.tab_shim import DesktopTabShim
from speed_client.tick_timer import TickTimer
from speed_config.store import ConfigStore
from version import DEV_MODE_ENV_VAR, __version__, is_dev_build

_LOGGER = logging.getLogger("TabSpeed.Client")

CONFIG_POLL_MS = 1000


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="TabSpeed media player")
    parser.add_argument("media", nargs="*", help="Audio or video files to open")
    parser.add_argument("--tab-id", type=int, default=None, help="Tab id used for pins and overrides (default: pid)")
    parser.add_argument("--config", help="Path to the configuration file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _build_window(media: List[QtMediaElement]) -> QMainWindow:
    window = QMainWindow()
    window.setWindowTitle(f"TabSpeed {__version__}")
    page = QWidget(window)
    layout = QVBoxLayout(page)
    if not media:
        layout.addWidget(QLabel("No media loaded. Pass files on the command line."))
    for elem in media:
        layout.addWidget(elem.widget)
    window.setCentralWidget(page)
    window.resize(960, 600)
    return window


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    debug_enabled = args.debug or is_dev_build()
    configure_logging(debug_enabled=debug_enabled)
    if not debug_enabled:
        _LOGGER.debug("Release logging active. Export %s=1 or pass --debug for verbose logs.", DEV_MODE_ENV_VAR)

    tab_id = args.tab_id if args.tab_id is not None else os.getpid()
    _LOGGER.info("Starting TabSpeed %s (pid=%s, tab=%s)", __version__, os.getpid(), tab_id)

    app = QApplication(sys.argv[:1])
    scheduler = QtScheduler(app)
    store = ConfigStore(Path(args.config) if args.config else None, post=scheduler.post)
    _LOGGER.debug("Configuration path resolved to %s", store.path)

    media = [QtMediaElement(source) for source in args.media]
    window = _build_window(media)
    document = ElementDocument()
    for elem in media:
        document.add(elem)

    page = window.centralWidget()
    indicator = QtIndicator(window, backdrop_target=page)
    keyboard = QtKeyboardSource(app, on_error=lambda exc: indicator.show_small("config error"))
    manager = Manager(
        store=store,
        tab_shim=DesktopTabShim(tab_id),
        keyboard=keyboard,
        sink=indicator,
        query_factory=build_query_factory(document, scheduler),
        scheduler=scheduler,
    )
    manager.startup()

    config_watch = TickTimer.from_scheduler(CONFIG_POLL_MS, scheduler, logger=_LOGGER.debug, label="config-watch")
    config_watch.start(store.check_for_changes)
    app.aboutToQuit.connect(config_watch.stop)
    app.aboutToQuit.connect(manager.release)

    window.show()
    for elem in media:
        elem.play()

    exit_code = app.exec()
    config_watch.stop()
    manager.release()
    keyboard.release()
    scheduler.cancel_all()
    _LOGGER.info("TabSpeed exiting with code %s", exit_code)
    return int(exit_code)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
