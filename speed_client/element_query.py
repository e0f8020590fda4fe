"""Element trackers over a document: reactive (``LazyQuery``) and polling (``PollQuery``)."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol

from speed_client.tick_timer import Scheduler, TickTimer
from speed_config.subscription import Subscription

_LOGGER = logging.getLogger("TabSpeed.Client.Query")

DocumentListener = Callable[[], None]


class Document(Protocol):
    def query_all(self, selector: str) -> List[object]: ...
    def subscribe(self, listener: DocumentListener) -> Subscription: ...


class ElementQuery(Protocol):
    @property
    def elems(self) -> List[object]: ...
    def set_query(self, selector: str) -> None: ...
    def release(self) -> None: ...


@dataclass(frozen=True)
class TrackerMode:
    polling: bool = False
    interval_ms: int = 1000


QueryFactory = Callable[[str, TrackerMode], ElementQuery]


def parse_selector(selector: str) -> List[str]:
    return [part.strip().lower() for part in str(selector or "").split(",") if part.strip()]


class ElementDocument:
    """In-memory element container standing in for a page's DOM.

    Elements are matched by their ``tag_name``; ``*`` matches everything.
    """

    def __init__(self) -> None:
        self._elements: List[object] = []
        self._listeners: Dict[int, DocumentListener] = {}
        self._next_token = 0

    def add(self, element: object) -> None:
        self._elements.append(element)
        self._notify()

    def remove(self, element: object) -> None:
        try:
            self._elements.remove(element)
        except ValueError:
            return
        self._notify()

    def elements(self) -> List[object]:
        return list(self._elements)

    def query_all(self, selector: str) -> List[object]:
        tags = parse_selector(selector)
        if "*" in tags:
            return list(self._elements)
        return [elem for elem in self._elements if str(getattr(elem, "tag_name", "")).lower() in tags]

    def subscribe(self, listener: DocumentListener) -> Subscription:
        token = self._next_token
        self._next_token += 1
        self._listeners[token] = listener
        return Subscription(lambda: self._listeners.pop(token, None), label="document")

    def _notify(self) -> None:
        for listener in list(self._listeners.values()):
            listener()


class LazyQuery:
    """Reactive tracker: marks itself dirty on document changes and re-queries on next read."""

    def __init__(self, document: Document, selector: str) -> None:
        self._document = document
        self._selector = selector
        self._elems: List[object] = []
        self._dirty = True
        self._subscription: Optional[Subscription] = document.subscribe(self._handle_change)

    @property
    def selector(self) -> str:
        return self._selector

    @property
    def elems(self) -> List[object]:
        if self._subscription is None:
            return []
        if self._dirty:
            self._elems = self._document.query_all(self._selector)
            self._dirty = False
        return list(self._elems)

    def set_query(self, selector: str) -> None:
        if selector == self._selector:
            return
        self._selector = selector
        self._dirty = True

    def release(self) -> None:
        subscription = self._subscription
        self._subscription = None
        self._elems = []
        if subscription is not None:
            subscription.unsubscribe()

    def _handle_change(self) -> None:
        self._dirty = True


class PollQuery:
    """Polling tracker: re-queries the document every ``interval_ms``."""

    def __init__(self, document: Document, selector: str, interval_ms: int, scheduler: Scheduler) -> None:
        self._document = document
        self._selector = selector
        self._released = False
        self._elems: List[object] = document.query_all(selector)
        self._timer = TickTimer.from_scheduler(interval_ms, scheduler, label="poll")
        self._timer.start(self._poll)

    @property
    def selector(self) -> str:
        return self._selector

    @property
    def interval_ms(self) -> int:
        return self._timer.interval_ms

    @property
    def elems(self) -> List[object]:
        return list(self._elems)

    def set_query(self, selector: str) -> None:
        if selector == self._selector:
            return
        self._selector = selector
        self._poll()

    def release(self) -> None:
        self._released = True
        self._timer.stop()
        self._elems = []

    def _poll(self) -> None:
        if self._released:
            return
        self._elems = self._document.query_all(self._selector)


def build_query_factory(document: Document, scheduler: Scheduler) -> QueryFactory:
    def _factory(selector: str, mode: TrackerMode) -> ElementQuery:
        if mode.polling:
            _LOGGER.debug("Creating polling query '%s' (%dms)", selector, mode.interval_ms)
            return PollQuery(document, selector, mode.interval_ms, scheduler)
        _LOGGER.debug("Creating reactive query '%s'", selector)
        return LazyQuery(document, selector)

    return _factory
