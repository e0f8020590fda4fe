from __future__ import annotations

from speed_client.tick_timer import TickTimer


class FakeScheduler:
    def __init__(self) -> None:
        self.pending = {}
        self.cancelled = []
        self._next = 0

    def after(self, delay_ms, callback):
        self._next += 1
        self.pending[self._next] = (delay_ms, callback)
        return self._next

    def after_cancel(self, handle):
        self.cancelled.append(handle)
        self.pending.pop(handle, None)

    def fire(self):
        due = list(self.pending.items())
        self.pending.clear()
        for _handle, (_delay, callback) in due:
            callback()


def test_timer_rearms_after_each_tick():
    scheduler = FakeScheduler()
    calls = []
    timer = TickTimer.from_scheduler(1000, scheduler)
    timer.start(lambda: calls.append("tick"))

    assert timer.active
    scheduler.fire()
    scheduler.fire()

    assert calls == ["tick", "tick"]
    assert list(scheduler.pending.values())[0][0] == 1000


def test_stop_cancels_pending_handle():
    scheduler = FakeScheduler()
    timer = TickTimer.from_scheduler(500, scheduler)
    timer.start(lambda: None)
    timer.stop()
    assert not timer.active
    assert scheduler.pending == {}
    assert scheduler.cancelled == [1]


def test_callback_stopping_timer_prevents_rearm():
    scheduler = FakeScheduler()
    timer = TickTimer.from_scheduler(500, scheduler)
    timer.start(timer.stop)
    scheduler.fire()
    assert not timer.active
    assert scheduler.pending == {}


def test_interval_is_clamped_and_restarts_when_changed():
    scheduler = FakeScheduler()
    timer = TickTimer.from_scheduler(1, scheduler)
    assert timer.interval_ms == TickTimer.MIN_INTERVAL_MS

    timer.start(lambda: None)
    timer.set_interval(250)
    assert timer.interval_ms == 250
    assert [delay for delay, _ in scheduler.pending.values()] == [250]


def test_logger_receives_start_message():
    scheduler = FakeScheduler()
    messages = []
    timer = TickTimer(
        100,
        after=scheduler.after,
        after_cancel=scheduler.after_cancel,
        logger=lambda msg, *args: messages.append(msg % args),
        label="reconcile",
    )
    timer.start(lambda: None)
    assert messages == ["reconcile timer started (100ms)"]
