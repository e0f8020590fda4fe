"""Static catalog of visual filters and helpers for formatting value sets."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence

from speed_config.errors import ConfigurationError


@dataclass(frozen=True)
class FilterInfo:
    """Bounds and step metadata for one filter."""

    name: str
    css_name: str
    min: float
    max: float
    default: float
    step: float
    large_step: float
    unit: str = ""

    def clamp(self, value: float) -> float:
        return clamp(self.min, self.max, value)

    def format(self, value: float) -> str:
        return f"{self.css_name}({format_number(value)}{self.unit})"


@dataclass
class FilterValue:
    """One entry of a filter value set."""

    filter: str
    value: float

    def to_dict(self) -> Dict[str, object]:
        return {"filter": self.filter, "value": self.value}


# Catalog order is also the order filters are composed into a filter string.
FILTER_INFOS: Dict[str, FilterInfo] = {
    "blur": FilterInfo("blur", "blur", 0.0, 10.0, 0.0, 0.1, 0.5, "px"),
    "brightness": FilterInfo("brightness", "brightness", 0.0, 5.0, 1.0, 0.01, 0.1),
    "contrast": FilterInfo("contrast", "contrast", 0.0, 5.0, 1.0, 0.01, 0.1),
    "grayscale": FilterInfo("grayscale", "grayscale", 0.0, 1.0, 0.0, 0.01, 0.1),
    "hueRotate": FilterInfo("hue", "hue-rotate", 0.0, 360.0, 0.0, 1.0, 15.0, "deg"),
    "invert": FilterInfo("invert", "invert", 0.0, 1.0, 0.0, 0.01, 0.1),
    "saturate": FilterInfo("saturate", "saturate", 0.0, 5.0, 1.0, 0.01, 0.1),
    "sepia": FilterInfo("sepia", "sepia", 0.0, 1.0, 0.0, 0.01, 0.1),
}


def clamp(minimum: float, maximum: float, value: float) -> float:
    return max(minimum, min(maximum, value))


def format_number(value: float) -> str:
    """Round to two decimals and drop trailing zeros (``1.50`` -> ``1.5``)."""
    return f"{round(float(value), 2):g}"


def get_filter_info(filter_id: str) -> FilterInfo:
    try:
        return FILTER_INFOS[filter_id]
    except KeyError as exc:
        raise ConfigurationError(f"Unknown filter '{filter_id}'") from exc


def default_filter_values() -> List[FilterValue]:
    """Fresh value set seeded with every catalog entry at its default."""
    return [FilterValue(filter_id, info.default) for filter_id, info in FILTER_INFOS.items()]


def parse_filter_values(raw: object) -> List[FilterValue]:
    if not isinstance(raw, (list, tuple)):
        raise ConfigurationError(f"Filter value set must be a list, got {type(raw).__name__}")
    values: List[FilterValue] = []
    for entry in raw:
        if not isinstance(entry, dict):
            raise ConfigurationError(f"Invalid filter value entry: {entry!r}")
        filter_id = str(entry.get("filter") or "")
        get_filter_info(filter_id)
        try:
            value = float(entry.get("value"))  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid value for filter '{filter_id}': {entry.get('value')!r}") from exc
        values.append(FilterValue(filter_id, value))
    return values


def clamp_filter_values(values: Iterable[FilterValue]) -> List[FilterValue]:
    return [FilterValue(v.filter, get_filter_info(v.filter).clamp(v.value)) for v in values]


def format_filters(values: Sequence[FilterValue]) -> str:
    """Compose the non-default entries into a filter string; empty when all are default."""
    parts = []
    for entry in values:
        info = FILTER_INFOS.get(entry.filter)
        if info is None or entry.value == info.default:
            continue
        parts.append(info.format(entry.value))
    return " ".join(parts)
