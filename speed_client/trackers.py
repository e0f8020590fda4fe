"""Keeps the media and fx element trackers in step with the effective context."""
from __future__ import annotations

import logging
from typing import Callable, List, Optional

from speed_client.element_query import ElementQuery, QueryFactory, TrackerMode
from speed_client.media import ElementFilter
from speed_client.notifications import NotificationSink
from speed_client.tick_timer import Scheduler, TickTimer
from speed_config.config_model import Configuration
from speed_config.context import EffectiveContext
from speed_config.filters import format_filters

MEDIA_SELECTOR = "video, audio"
DEFAULT_FX_QUERY = "video"
TICK_INTERVAL_MS = 1000

_LOGGER = logging.getLogger("TabSpeed.Client.Trackers")

ContextFn = Callable[[], EffectiveContext]


class ElementTrackerLifecycle:
    """Owns the media tracker, the fx tracker, and the reconciliation tick.

    Each tracker is either absent or active. Disabling tears everything down in
    one call; enabling creates what is missing and reconfigures the rest.
    """

    def __init__(
        self,
        *,
        query_factory: QueryFactory,
        scheduler: Scheduler,
        sink: NotificationSink,
        context_fn: ContextFn,
        element_filter: Optional[ElementFilter] = None,
    ) -> None:
        self._query_factory = query_factory
        self._sink = sink
        self._context_fn = context_fn
        self._element_filter = element_filter or ElementFilter()
        self._tick = TickTimer.from_scheduler(TICK_INTERVAL_MS, scheduler, logger=_LOGGER.debug, label="reconcile")
        self.media_query: Optional[ElementQuery] = None
        self.fx_query: Optional[ElementQuery] = None

    @property
    def tick_active(self) -> bool:
        return self._tick.active

    @property
    def media_elements(self) -> List[object]:
        query = self.media_query
        return query.elems if query is not None else []

    @property
    def has_media(self) -> bool:
        return len(self.media_elements) > 0

    @property
    def element_filter(self) -> ElementFilter:
        return self._element_filter

    def reconcile(self, config: Configuration, ctx: EffectiveContext) -> None:
        if not ctx.enabled:
            self.suspend()
            return

        if not self._tick.active:
            self._tick.start(self._handle_tick)
        mode = TrackerMode(polling=config.use_polling, interval_ms=config.poll_rate)
        if self.media_query is None:
            self.media_query = self._query_factory(MEDIA_SELECTOR, mode)
            _LOGGER.debug("Media tracker created (polling=%s)", mode.polling)

        if ctx.element_fx and format_filters(ctx.element_filter_values):
            query = ctx.element_query or DEFAULT_FX_QUERY
            if self.fx_query is None:
                self.fx_query = self._query_factory(query, mode)
                _LOGGER.debug("Fx tracker created for '%s'", query)
            self.fx_query.set_query(query)
        else:
            self._release_fx_query()

        self.update_page(ctx)

    def suspend(self) -> None:
        self._tick.stop()
        if self.media_query is not None:
            self.media_query.release()
            self.media_query = None
        self._safe_sink_call(self._sink.hide_backdrop)
        self._element_filter.clear()
        self._release_fx_query()

    def update_page(self, ctx: EffectiveContext) -> None:
        if not ctx.enabled:
            return

        for elem in self.media_elements:
            if getattr(elem, "playback_rate", None) != ctx.speed:
                elem.playback_rate = ctx.speed

        elem_filter = format_filters(ctx.element_filter_values)
        if ctx.element_fx and elem_filter:
            fx_elems = self.fx_query.elems if self.fx_query is not None else []
            self._element_filter.apply(fx_elems, elem_filter, ctx.element_query or DEFAULT_FX_QUERY)
        else:
            self._element_filter.clear()

        backdrop_filter = format_filters(ctx.backdrop_filter_values)
        if ctx.backdrop_fx and backdrop_filter:
            self._safe_sink_call(self._sink.show_backdrop, backdrop_filter)
        else:
            self._safe_sink_call(self._sink.hide_backdrop)

    def _handle_tick(self) -> None:
        self.update_page(self._context_fn())

    def _release_fx_query(self) -> None:
        if self.fx_query is not None:
            self.fx_query.release()
            self.fx_query = None

    @staticmethod
    def _safe_sink_call(fn, *args) -> None:
        try:
            fn(*args)
        except Exception as exc:
            _LOGGER.debug("Indicator call %s failed: %s", getattr(fn, "__name__", fn), exc)
