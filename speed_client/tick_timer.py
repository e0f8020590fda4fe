from __future__ import annotations

from typing import Callable, Optional, Protocol

AfterFn = Callable[[int, Callable[[], None]], object]
AfterCancelFn = Callable[[object], None]
LoggerFn = Callable[..., None]


class Scheduler(Protocol):
    def after(self, delay_ms: int, callback: Callable[[], None]) -> object: ...
    def after_cancel(self, handle: object) -> None: ...


def _noop_log(message: str, *args: object) -> None:
    return None


class TickTimer:
    """Repeating timer built on one-shot ``after``/``after_cancel`` callbacks."""

    MIN_INTERVAL_MS = 50

    def __init__(
        self,
        interval_ms: int,
        *,
        after: AfterFn,
        after_cancel: AfterCancelFn,
        logger: Optional[LoggerFn] = None,
        label: str = "tick",
    ) -> None:
        self._interval_ms = self._clamp_interval(interval_ms)
        self._after = after
        self._after_cancel = after_cancel
        self._logger = logger or _noop_log
        self._label = label
        self._handle: object | None = None
        self._callback: Callable[[], None] | None = None
        self._running = False

    @classmethod
    def from_scheduler(cls, interval_ms: int, scheduler: Scheduler, **kwargs) -> "TickTimer":
        return cls(interval_ms, after=scheduler.after, after_cancel=scheduler.after_cancel, **kwargs)

    @property
    def interval_ms(self) -> int:
        return self._interval_ms

    @property
    def active(self) -> bool:
        return self._handle is not None

    def start(self, callback: Callable[[], None]) -> None:
        self._callback = callback
        self.stop()
        self._running = True
        self._handle = self._after(self._interval_ms, self._run)
        self._log("%s timer started (%dms)", self._label, self._interval_ms)

    def stop(self) -> None:
        self._running = False
        handle = self._handle
        self._handle = None
        if handle is not None:
            try:
                self._after_cancel(handle)
            except Exception:
                pass

    def set_interval(self, interval_ms: int) -> None:
        value = self._clamp_interval(interval_ms)
        if value == self._interval_ms:
            return
        self._interval_ms = value
        if self._handle is not None and self._callback is not None:
            self.start(self._callback)

    def _run(self) -> None:
        self._handle = None
        try:
            if self._callback is not None:
                self._callback()
        finally:
            # The callback may have stopped (or restarted) the timer.
            if self._running and self._handle is None:
                self._handle = self._after(self._interval_ms, self._run)

    @classmethod
    def _clamp_interval(cls, value: int) -> int:
        return max(cls.MIN_INTERVAL_MS, int(value))

    def _log(self, message: str, *args: object) -> None:
        try:
            self._logger(message, *args)
        except Exception:
            pass
