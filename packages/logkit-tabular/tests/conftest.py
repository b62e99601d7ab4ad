"""Shared test fixtures for logkit-tabular tests."""

from __future__ import annotations

import zipfile
from datetime import datetime, timedelta
from pathlib import Path

import openpyxl
import pytest

from logkit_core.models import DataPoint, Dataset

from logkit_tabular.config import TabularParserConfig
from logkit_tabular.registry import DatasetRegistry

SENSOR_CSV = (
    "timestamp,deviceData.temp,deviceData.hum\n"
    "2024-01-15 10:30:00,20.5,40\n"
    "2024-01-15 10:31:00,21.0,41\n"
    "2024-01-15 10:32:00,21.5,42\n"
)


@pytest.fixture
def default_config() -> TabularParserConfig:
    """Return a default TabularParserConfig."""
    return TabularParserConfig()


@pytest.fixture
def registry(default_config: TabularParserConfig) -> DatasetRegistry:
    """Return an empty registry using the default config."""
    return DatasetRegistry(default_config)


@pytest.fixture
def sensor_csv() -> str:
    """Three-row, two-variable timestamp-first CSV."""
    return SENSOR_CSV


@pytest.fixture
def tmp_log_file(tmp_path: Path):
    """Factory fixture to write text or bytes to a temp log file and return the path."""

    def _write(content: str | bytes = SENSOR_CSV, filename: str = "sensor.csv") -> str:
        file_path = tmp_path / filename
        if isinstance(content, str):
            file_path.write_text(content, encoding="utf-8")
        else:
            file_path.write_bytes(content)
        return str(file_path)

    return _write


@pytest.fixture
def tmp_xlsx_file(tmp_path: Path):
    """Factory fixture building a real .xlsx workbook from row lists."""

    def _write(
        rows: list[list] | None = None,
        filename: str = "sensor.xlsx",
        extra_sheets: int = 0,
    ) -> str:
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = "Data"
        if rows is None:
            rows = [
                ["timestamp", "temp"],
                [datetime(2024, 1, 15, 10, 30), 20.5],
                [datetime(2024, 1, 15, 10, 31), 21.0],
            ]
        for row in rows:
            ws.append(row)
        for i in range(extra_sheets):
            wb.create_sheet(f"Extra{i + 1}").append(["ignored"])
        file_path = tmp_path / filename
        wb.save(str(file_path))
        wb.close()
        return str(file_path)

    return _write


@pytest.fixture
def corrupt_xlsx_file(tmp_xlsx_file):
    """Factory fixture: a valid workbook whose first sheet XML is cut in half."""

    def _write(filename: str = "corrupt.xlsx") -> str:
        source = Path(tmp_xlsx_file(filename=f"source_{filename}"))
        target = source.with_name(filename)
        with zipfile.ZipFile(source) as src, zipfile.ZipFile(target, "w") as dst:
            for item in src.infolist():
                data = src.read(item.filename)
                if item.filename == "xl/worksheets/sheet1.xml":
                    data = data[: len(data) // 2]
                dst.writestr(item, data)
        return str(target)

    return _write


def make_dataset(
    source_id: str = "run",
    values: dict[str, list[float | None]] | None = None,
    start: datetime = datetime(2024, 1, 15, 10, 0),
) -> Dataset:
    """Build a small aligned dataset with one-minute spacing."""
    if values is None:
        values = {"A": [1.0, 2.0, 3.0]}
    names = list(values)
    length = len(next(iter(values.values()))) if values else 0
    instants = [start + timedelta(minutes=i) for i in range(length)]
    return Dataset(
        source_id=source_id,
        variable_names=names,
        series={
            name: [DataPoint(instant=t, value=v) for t, v in zip(instants, vals)]
            for name, vals in values.items()
        },
        row_count=length,
    )


@pytest.fixture
def dataset_factory():
    """Return :func:`make_dataset` for building datasets inline."""
    return make_dataset
