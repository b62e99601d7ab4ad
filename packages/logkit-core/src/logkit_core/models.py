"""Canonical time-series models shared by every logkit package.

Contains ``DataPoint``, ``Dataset`` and ``VariableConfig`` -- the shapes the
ingestion pipeline produces and that chart, export and statistics consumers
read.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, model_validator


# ---------------------------------------------------------------------------
# Series
# ---------------------------------------------------------------------------


class DataPoint(BaseModel):
    """One cell of one variable at one row.

    ``value`` is ``None`` when the cell was missing or unparsable; such points
    are kept so consumers can choose their own gap-handling policy.
    """

    instant: datetime
    value: float | None = None


class Dataset(BaseModel):
    """A parsed log file as a single row-aligned table.

    ``variable_names`` preserves column order.  Every ``series[name]`` has the
    same length and the same ``instant`` at each index.
    """

    source_id: str
    variable_names: list[str]
    series: dict[str, list[DataPoint]]
    row_count: int = 0
    invalid_row_count: int = 0
    color_assignment: dict[str, str] = {}
    delimiter: str | None = None

    @model_validator(mode="after")
    def _check_alignment(self) -> Dataset:
        if len(set(self.variable_names)) != len(self.variable_names):
            raise ValueError("variable_names must be unique")
        if set(self.series) != set(self.variable_names):
            raise ValueError("series keys must match variable_names")
        lengths = {len(points) for points in self.series.values()}
        if len(lengths) > 1:
            raise ValueError(f"series are not row-aligned: lengths {sorted(lengths)}")
        if not self.variable_names:
            return self
        reference = [p.instant for p in self.series[self.variable_names[0]]]
        for name in self.variable_names[1:]:
            if [p.instant for p in self.series[name]] != reference:
                raise ValueError(
                    f"series are not row-aligned: instants of {name!r} differ"
                )
        return self

    @property
    def instants(self) -> list[datetime]:
        """Row instants shared by every variable."""
        if not self.variable_names:
            return []
        return [p.instant for p in self.series[self.variable_names[0]]]


# ---------------------------------------------------------------------------
# Session configuration
# ---------------------------------------------------------------------------


class VariableConfig(BaseModel):
    """Per-variable display settings keyed by global variable key."""

    enabled: bool = False
    display_label: str
    color: str
    y_min: float | None = None
    y_max: float | None = None
    axis_group: str | None = None
