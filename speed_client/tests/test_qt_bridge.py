from __future__ import annotations

import os

import pytest

pytestmark = pytest.mark.pyqt_required

from PyQt6.QtTest import QTest  # noqa: E402
from PyQt6.QtWidgets import (  # noqa: E402
    QApplication,
    QGraphicsBlurEffect,
    QGraphicsColorizeEffect,
    QLineEdit,
    QPlainTextEdit,
    QWidget,
)

from speed_client.hotkeys import KeyEvent  # noqa: E402
from speed_client.qt_bridge import QtKeyboardSource, QtScheduler, target_for_widget  # noqa: E402
from speed_client.qt_indicator import QtIndicator, build_graphics_effect, parse_filter_string  # noqa: E402
from speed_config.errors import ConfigurationError  # noqa: E402


@pytest.fixture(scope="module")
def qt_app():
    # Force Qt to run headless for CI/CLI test runs.
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    return app


def test_scheduler_runs_and_cancels(qt_app):
    scheduler = QtScheduler(qt_app)
    calls = []
    scheduler.after(0, lambda: calls.append("run"))
    cancelled = scheduler.after(0, lambda: calls.append("cancelled"))
    scheduler.after_cancel(cancelled)
    scheduler.post(lambda: calls.append("posted"))
    QTest.qWait(50)
    assert sorted(calls) == ["posted", "run"]


def test_capture_listener_can_stop_bubble_pass(qt_app):
    source = QtKeyboardSource(qt_app)
    seen = []

    def _capture(event):
        seen.append("capture")
        event.prevent_default()
        event.stop_immediate_propagation()

    source.add_listener(lambda event: seen.append("bubble"))
    source.add_listener(_capture, capture=True)
    try:
        assert source.deliver(KeyEvent("q")) is True
        assert seen == ["capture"]
    finally:
        source.release()


def test_bubble_runs_when_capture_passes(qt_app):
    source = QtKeyboardSource(qt_app)
    seen = []
    subscription = source.add_listener(lambda event: seen.append("bubble"))
    source.add_listener(lambda event: seen.append("capture"), capture=True)
    try:
        assert source.deliver(KeyEvent("d")) is False
        assert seen == ["capture", "bubble"]
        subscription.unsubscribe()
        source.deliver(KeyEvent("d"))
        assert seen == ["capture", "bubble", "capture"]
    finally:
        source.release()


def test_configuration_errors_reach_error_callback(qt_app):
    errors = []
    source = QtKeyboardSource(qt_app, on_error=errors.append)

    def _broken(event):
        raise ConfigurationError("Unknown filter 'glow'")

    source.add_listener(_broken)
    try:
        assert source.deliver(KeyEvent("g")) is False
        assert len(errors) == 1
    finally:
        source.release()


def test_editable_widgets_map_to_targets(qt_app):
    assert target_for_widget(QLineEdit()).tag_name == "INPUT"
    assert target_for_widget(QPlainTextEdit()).tag_name == "TEXTAREA"
    readonly = QLineEdit()
    readonly.setReadOnly(True)
    assert target_for_widget(readonly).is_content_editable is False
    assert target_for_widget(None).tag_name == "BODY"


def test_filter_strings_map_to_effects(qt_app):
    assert parse_filter_string("blur(2.5px) hue-rotate(90deg)") == [("blur", 2.5), ("hue-rotate", 90.0)]
    blur = build_graphics_effect("blur(2px) grayscale(1)")
    assert isinstance(blur, QGraphicsBlurEffect)
    assert blur.blurRadius() == pytest.approx(2.0)
    assert isinstance(build_graphics_effect("sepia(0.5)"), QGraphicsColorizeEffect)
    assert build_graphics_effect("") is None
    assert build_graphics_effect("contrast(2)") is None


def test_indicator_backdrop_effect_lifecycle(qt_app):
    window = QWidget()
    page = QWidget(window)
    indicator = QtIndicator(window, backdrop_target=page)

    indicator.show_small("on")
    assert indicator.text() == "on"
    indicator.show_backdrop("blur(3px)")
    assert isinstance(page.graphicsEffect(), QGraphicsBlurEffect)
    assert indicator.backdrop_value == "blur(3px)"

    indicator.hide_backdrop()
    assert page.graphicsEffect() is None

    indicator.release()
    indicator.show_backdrop("blur(3px)")
    assert page.graphicsEffect() is None
