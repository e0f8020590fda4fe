from __future__ import annotations

import gc
import webbrowser

from speed_client import tab_shim
from speed_client.media import ElementFilter, MediaMarks, set_media_current_time
from speed_client.tab_shim import DesktopTabShim, SenderInfo


class FakeMedia:
    def __init__(self, current_time=0.0, duration=0.0) -> None:
        self.tag_name = "video"
        self.style_filter = ""
        self.current_time = current_time
        self.duration = duration


def test_absolute_seek_without_known_duration_only_floors():
    media = FakeMedia(duration=0.0)
    set_media_current_time([media], 500.0, False)
    assert media.current_time == 500.0
    set_media_current_time([media], -3.0, False)
    assert media.current_time == 0.0


def test_marks_are_dropped_with_their_element():
    marks = MediaMarks()
    media = FakeMedia(current_time=4.0)
    assert marks.set_mark([media], "a") == [(media, 4.0)]
    assert marks.get_mark(media, "b") is None
    del media
    gc.collect()
    assert len(marks._marks) == 0  # type: ignore[attr-defined]


def test_element_filter_clears_stale_elements():
    flt = ElementFilter()
    first, second = FakeMedia(), FakeMedia()
    flt.apply([first, second], "invert(1)", "video")
    assert (first.style_filter, second.style_filter) == ("invert(1)", "invert(1)")
    assert flt.query == "video"

    flt.apply([second], "invert(1)", "video")
    assert first.style_filter == ""

    flt.clear()
    assert second.style_filter == ""
    assert not flt.active
    assert flt.query == ""


def test_desktop_tab_shim(monkeypatch):
    opened = []
    monkeypatch.setattr(tab_shim.webbrowser, "open_new_tab", lambda url: opened.append(url) or True)
    shim = DesktopTabShim(3)
    assert shim.request_sender_info() == SenderInfo(3)
    shim.request_create_tab("https://example.org")
    assert opened == ["https://example.org"]


def test_desktop_tab_shim_logs_browser_errors(monkeypatch, caplog):
    def _fail(url):
        raise webbrowser.Error("no runnable browser")

    monkeypatch.setattr(tab_shim.webbrowser, "open_new_tab", _fail)
    DesktopTabShim(3).request_create_tab("https://example.org")
    assert any("Unable to open" in record.getMessage() for record in caplog.records)
