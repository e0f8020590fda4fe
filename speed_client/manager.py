"""Wires keyboard, configuration, and timer events to the TabSpeed core."""
from __future__ import annotations

import logging
from typing import List, Optional

from speed_client.commands import CommandDispatcher
from speed_client.element_query import QueryFactory
from speed_client.hotkeys import HotkeyMatcher, KeyboardSource, KeyEvent, is_editable_target
from speed_client.lifecycle import LifecycleTracker
from speed_client.media import MediaMarks
from speed_client.notifications import NotificationSink
from speed_client.tab_shim import TabShim
from speed_client.tick_timer import Scheduler
from speed_client.trackers import ElementTrackerLifecycle
from speed_config.config_model import Configuration, KeyBind
from speed_config.context import EffectiveContext, commit_context, get_context, get_pin
from speed_config.store import ConfigStore, StorageChanges, parse_changes

_LOGGER = logging.getLogger("TabSpeed.Client.Manager")


class Manager:
    """Per-tab orchestrator.

    ``startup`` loads the configuration and registers listeners; every handle it
    registers is released by ``release``. All work happens synchronously inside
    the handler of the event that triggered it.
    """

    def __init__(
        self,
        *,
        store: ConfigStore,
        tab_shim: TabShim,
        keyboard: KeyboardSource,
        sink: NotificationSink,
        query_factory: QueryFactory,
        scheduler: Scheduler,
    ) -> None:
        self._store = store
        self._tab_shim = tab_shim
        self._keyboard = keyboard
        self._sink: Optional[NotificationSink] = sink
        self._lifecycle = LifecycleTracker(_LOGGER)
        self._matcher = HotkeyMatcher()
        self.config: Optional[Configuration] = None
        self.tab_id: Optional[int] = None
        self.released = False
        self.trackers = ElementTrackerLifecycle(
            query_factory=query_factory,
            scheduler=scheduler,
            sink=sink,
            context_fn=self.context,
        )
        self.dispatcher = CommandDispatcher(
            sink=sink,
            media_fn=lambda: self.trackers.media_elements,
            tab_shim=tab_shim,
            marks=MediaMarks(),
        )

    # Lifecycle ------------------------------------------------------------

    def startup(self) -> None:
        self.tab_id = self._tab_shim.request_sender_info().tab_id
        self.config = self._store.load_or_default()
        _LOGGER.info("Manager starting for tab %s (%d keybinds)", self.tab_id, len(self.config.keybinds))
        self.handle_config_change()
        self._lifecycle.track_handle(self._store.subscribe(self.handle_storage_change))
        self._lifecycle.track_handle(self._keyboard.add_listener(self.handle_key_down, capture=False))
        self._lifecycle.track_handle(self._keyboard.add_listener(self.handle_key_down_greedy, capture=True))

    def release(self) -> None:
        if self.released:
            return
        self.released = True

        self.suspend()
        sink = self._sink
        self._sink = None
        if sink is not None:
            try:
                sink.release()
            except Exception as exc:
                _LOGGER.debug("Indicator release failed: %s", exc)
        self._lifecycle.release_all()
        _LOGGER.info("Manager released for tab %s", self.tab_id)

    def suspend(self) -> None:
        self.trackers.suspend()

    # Configuration --------------------------------------------------------

    def context(self) -> EffectiveContext:
        return get_context(self._require_config(), self.tab_id)

    def handle_storage_change(self, changes: Optional[StorageChanges]) -> None:
        new_config = parse_changes(changes)
        if new_config is None:
            return
        self.config = new_config
        self.handle_config_change()

    def handle_config_change(self) -> None:
        if self.released:
            return
        config = self._require_config()
        ctx = get_context(config, self.tab_id)
        if not ctx.enabled:
            _LOGGER.debug("Tab %s disabled; suspending trackers", self.tab_id)
        self.trackers.reconcile(config, ctx)

    def update_page(self) -> None:
        self.trackers.update_page(self.context())

    # Keyboard -------------------------------------------------------------

    def handle_key_down_greedy(self, event: KeyEvent) -> None:
        if self.config is None or self.released:
            return
        ctx = self.context()
        matched = self._matcher.match_greedy(
            self.config.keybinds,
            event,
            enabled=ctx.enabled,
            has_media=self.trackers.has_media,
        )
        if not matched:
            return
        event.prevent_default()
        event.stop_immediate_propagation()
        self.handle_key_down(event)

    def handle_key_down(self, event: KeyEvent) -> None:
        if self.config is None or self.released:
            return
        if is_editable_target(event.target):
            return
        config = self.config
        ctx = self.context()
        matched = self._matcher.match(
            config.keybinds,
            event,
            enabled=ctx.enabled,
            has_media=self.trackers.has_media,
        )
        self.run_bindings(matched)

    def run_bindings(self, bindings: List[KeyBind]) -> None:
        """Dispatch ``bindings`` in order, then persist once."""
        config = self._require_config()
        tab_id = self.tab_id
        for binding in bindings:
            pin = get_pin(config, tab_id)
            baseline = get_context(config, tab_id)
            ctx = get_context(config, tab_id)
            self.dispatcher.dispatch(binding, config, tab_id, pin, ctx)
            changed = commit_context(config, tab_id, ctx, baseline=baseline)
            if changed:
                _LOGGER.debug("Binding %s changed %s", binding.id, ", ".join(changed))
        self.handle_config_change()
        self._store.persist(config)

    def _require_config(self) -> Configuration:
        if self.config is None:
            raise RuntimeError("Manager used before startup()")
        return self.config
