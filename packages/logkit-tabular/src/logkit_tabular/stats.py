"""Aggregate statistics over a variable's points.

``None`` results mean "nothing to report" (no non-null value in range) and
are not errors; consumers omit such variables from display.
"""

from __future__ import annotations

import statistics
from collections.abc import Iterable
from datetime import datetime

from logkit_core.models import DataPoint

from logkit_tabular.models import Stats, VariableStats
from logkit_tabular.registry import DatasetRegistry
from logkit_tabular.views import display_label


def compute_stats(
    points: Iterable[DataPoint],
    range_start: datetime | None = None,
    range_end: datetime | None = None,
) -> Stats | None:
    """Describe the non-null values of *points*, optionally time-filtered.

    The range is inclusive at both ends.  The standard deviation is the
    population one (divides by N).

    Returns ``None`` when no value remains after filtering.
    """
    values = [
        p.value
        for p in points
        if p.value is not None
        and (range_start is None or p.instant >= range_start)
        and (range_end is None or p.instant <= range_end)
    ]
    if not values:
        return None

    low = min(values)
    high = max(values)
    total = sum(values)
    count = len(values)
    return Stats(
        min=low,
        max=high,
        mean=total / count,
        median=statistics.median(values),
        std_dev=statistics.pstdev(values),
        sum=total,
        count=count,
        range=high - low,
    )


def variable_stats(
    registry: DatasetRegistry,
    key: str,
    range_start: datetime | None = None,
    range_end: datetime | None = None,
) -> VariableStats | None:
    """Statistics for one global variable key, labelled for display.

    Returns ``None`` for unknown keys or when nothing is in range.
    """
    points = registry.series(key)
    config = registry.variable_configs.get(key)
    if points is None or config is None:
        return None
    stats = compute_stats(points, range_start, range_end)
    if stats is None:
        return None
    return VariableStats(
        **stats.model_dump(),
        key=key,
        label=display_label(
            config.display_label, registry.config.display_label_prefixes
        ),
        color=config.color,
        range_start=range_start,
        range_end=range_end,
    )


def selection_stats(
    registry: DatasetRegistry,
    range_start: datetime | None = None,
    range_end: datetime | None = None,
) -> list[VariableStats]:
    """Statistics for every selected key, in selection order.

    Keys with nothing to report are omitted.
    """
    results: list[VariableStats] = []
    for key in registry.selected_keys:
        stats = variable_stats(registry, key, range_start, range_end)
        if stats is not None:
            results.append(stats)
    return results
