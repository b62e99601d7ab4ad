"""CSV export of selected variables.

One output row per distinct instant across the exported keys, ascending.
Cells are matched on exact instant equality; a variable with no point at an
instant leaves its cell empty.
"""

from __future__ import annotations

import csv
import io
import logging
import pathlib
from datetime import datetime

from logkit_tabular.registry import DatasetRegistry

logger = logging.getLogger("logkit_tabular")


def _format_number(value: float) -> str:
    if value.is_integer():
        return str(int(value))
    return repr(value)


def export_rows(
    registry: DatasetRegistry, keys: list[str] | None = None
) -> list[list[str]]:
    """Build the export table (header first) for *keys*.

    *keys* defaults to the registry's selected keys; unknown keys are
    skipped.
    """
    config = registry.config
    wanted = registry.selected_keys if keys is None else keys

    columns: list[tuple[str, dict[datetime, float | None]]] = []
    for key in wanted:
        points = registry.series(key)
        var_config = registry.variable_configs.get(key)
        if points is None or var_config is None:
            logger.debug("logkit_tabular | export | unknown key skipped: %s", key)
            continue
        columns.append(
            (var_config.display_label, {p.instant: p.value for p in points})
        )

    header = ["Date", "Time"] + [label for label, _ in columns]
    instants = sorted({instant for _, values in columns for instant in values})

    rows: list[list[str]] = [header]
    for instant in instants:
        row = [
            instant.strftime(config.export_date_format),
            instant.strftime(config.export_time_format),
        ]
        for _, values in columns:
            value = values.get(instant)
            row.append("" if value is None else _format_number(value))
        rows.append(row)
    return rows


def export_csv(registry: DatasetRegistry, keys: list[str] | None = None) -> str:
    """Render the export table as CSV text (``\\n`` line endings)."""
    buffer = io.StringIO(newline="")
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerows(export_rows(registry, keys))
    return buffer.getvalue()


def write_csv(
    path: str, registry: DatasetRegistry, keys: list[str] | None = None
) -> int:
    """Write the export to *path*; returns the number of data rows written."""
    rows = export_rows(registry, keys)
    with open(pathlib.Path(path), "w", newline="", encoding="utf-8") as fh:
        csv.writer(fh, lineterminator="\n").writerows(rows)
    logger.info("logkit_tabular | exported | path=%s | rows=%d", path, len(rows) - 1)
    return len(rows) - 1
