from __future__ import annotations

import logging

from speed_client.lifecycle import LifecycleTracker
from speed_config.subscription import Subscription


def test_release_all_unsubscribes_newest_first():
    order = []
    tracker = LifecycleTracker(logging.getLogger("test-lifecycle"))
    first = tracker.track_handle(Subscription(lambda: order.append("first"), label="first"))
    second = tracker.track_handle(Subscription(lambda: order.append("second"), label="second"))

    tracker.release_all()

    assert order == ["second", "first"]
    assert tracker.handles == []
    assert not first.active and not second.active


def test_untrack_keeps_handle_alive():
    tracker = LifecycleTracker(logging.getLogger("test-lifecycle"))
    handle = tracker.track_handle(Subscription(lambda: None))
    tracker.untrack_handle(handle)
    tracker.release_all()
    assert handle.active
    assert tracker.track_handle(None) is None


def test_failed_release_is_logged_and_others_continue(caplog):
    released = []

    def _boom():
        raise RuntimeError("boom")

    tracker = LifecycleTracker(logging.getLogger("test-lifecycle-failure"))
    tracker.track_handle(Subscription(lambda: released.append("ok"), label="ok"))
    tracker.track_handle(Subscription(_boom, label="boom"))

    with caplog.at_level(logging.WARNING, logger="test-lifecycle-failure"):
        tracker.release_all()

    assert released == ["ok"]
    assert any("boom" in record.getMessage() for record in caplog.records)
