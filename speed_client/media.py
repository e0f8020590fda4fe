"""Operations applied to tracked media elements."""
from __future__ import annotations

import weakref
from typing import Dict, Iterable, List, Protocol, Sequence, Tuple

from speed_config.config_model import StateOption
from speed_config.context import apply_state


class FilterableElement(Protocol):
    tag_name: str
    style_filter: str


class MediaElement(FilterableElement, Protocol):
    playback_rate: float
    current_time: float
    duration: float
    paused: bool
    muted: bool

    def play(self) -> None: ...
    def pause(self) -> None: ...


def set_media_current_time(elems: Iterable[MediaElement], value: float, relative: bool) -> None:
    for elem in elems:
        target = elem.current_time + value if relative else value
        duration = elem.duration
        if duration and duration > 0:
            target = min(target, duration)
        elem.current_time = max(0.0, target)


def set_media_pause(elems: Iterable[MediaElement], state: StateOption) -> None:
    for elem in elems:
        if apply_state(state, elem.paused):
            elem.pause()
        else:
            elem.play()


def set_media_mute(elems: Iterable[MediaElement], state: StateOption) -> None:
    for elem in elems:
        elem.muted = apply_state(state, elem.muted)


class MediaMarks:
    """Named time bookmarks kept per media element for as long as the element lives."""

    def __init__(self) -> None:
        self._marks: "weakref.WeakKeyDictionary[MediaElement, Dict[str, float]]" = weakref.WeakKeyDictionary()

    def set_mark(self, elems: Sequence[MediaElement], key: str) -> List[Tuple[MediaElement, float]]:
        placed = []
        for elem in elems:
            position = float(elem.current_time)
            self._marks.setdefault(elem, {})[key] = position
            placed.append((elem, position))
        return placed

    def seek_mark(self, elems: Sequence[MediaElement], key: str) -> bool:
        sought = False
        for elem in elems:
            position = self._marks.get(elem, {}).get(key)
            if position is None:
                continue
            elem.current_time = position
            sought = True
        return sought

    def get_mark(self, elem: MediaElement, key: str) -> float | None:
        return self._marks.get(elem, {}).get(key)


class ElementFilter:
    """Applies a filter string to fx-target elements and remembers them so it can clear them."""

    def __init__(self) -> None:
        self._applied: "weakref.WeakSet[FilterableElement]" = weakref.WeakSet()
        self._query = ""

    @property
    def active(self) -> bool:
        return len(self._applied) > 0

    @property
    def query(self) -> str:
        return self._query

    def apply(self, elems: Sequence[FilterableElement], filter_value: str, query: str) -> None:
        current = list(elems)
        for stale in [elem for elem in self._applied if elem not in current]:
            stale.style_filter = ""
            self._applied.discard(stale)
        for elem in current:
            if elem.style_filter != filter_value:
                elem.style_filter = filter_value
            self._applied.add(elem)
        self._query = query

    def clear(self) -> None:
        for elem in list(self._applied):
            elem.style_filter = ""
        self._applied.clear()
        self._query = ""
