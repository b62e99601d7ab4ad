"""Read-only helpers for chart and statistics consumers.

These shape registry contents for display -- label cleanup, point
decimation, axis grouping, date-range captions -- without drawing anything.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from logkit_core.models import DataPoint

if TYPE_CHECKING:
    from logkit_tabular.registry import DatasetRegistry

_DEFAULT_PREFIXES = ("deviceData.",)
_CAPTION_DATE_FORMAT = "%d/%m/%Y"


def display_label(label: str, prefixes: list[str] | tuple[str, ...] | None = None) -> str:
    """Strip the first matching export prefix (e.g. ``deviceData.``)."""
    for prefix in prefixes if prefixes is not None else _DEFAULT_PREFIXES:
        if prefix and label.startswith(prefix):
            return label[len(prefix) :]
    return label


def decimate(points: list[DataPoint], max_points: int, target_points: int) -> list[DataPoint]:
    """Keep every n-th point once *points* exceeds *max_points*.

    ``n = ceil(len(points) / target_points)``; the first point is always kept.
    """
    if len(points) <= max_points or target_points <= 0:
        return points
    step = math.ceil(len(points) / target_points)
    return points[::step]


def chart_points(registry: DatasetRegistry, key: str) -> list[DataPoint]:
    """Non-null points of *key*, decimated for plotting."""
    points = registry.series(key) or []
    present = [p for p in points if p.value is not None]
    config = registry.config
    return decimate(present, config.chart_max_points, config.chart_target_points)


def axis_groups(registry: DatasetRegistry) -> dict[str, list[str]]:
    """Group selected keys by shared display axis.

    Variables without an ``axis_group`` get an axis of their own (keyed by
    the variable key).  Group and member order follow selection order.
    """
    groups: dict[str, list[str]] = {}
    for key in registry.selected_keys:
        config = registry.variable_configs.get(key)
        if config is None:
            continue
        groups.setdefault(config.axis_group or key, []).append(key)
    return groups


def date_range_label(registry: DatasetRegistry) -> str | None:
    """Caption spanning the non-null data of the selected keys.

    Returns ``DD/MM/YYYY`` when everything falls on one day,
    ``DD/MM/YYYY - DD/MM/YYYY`` otherwise, and ``None`` with no data.
    """
    instants = [
        p.instant
        for key in registry.selected_keys
        for p in registry.series(key) or []
        if p.value is not None
    ]
    if not instants:
        return None
    first = min(instants).strftime(_CAPTION_DATE_FORMAT)
    last = max(instants).strftime(_CAPTION_DATE_FORMAT)
    return first if first == last else f"{first} - {last}"
