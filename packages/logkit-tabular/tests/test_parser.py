"""Tests for logkit_tabular.parser -- chunked parsing into aligned datasets."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from unittest.mock import patch

import pytest

from logkit_tabular.config import FileConvention, TabularParserConfig
from logkit_tabular.errors import (
    EmptyFileError,
    ErrorCode,
    MissingVariableColumnsError,
    NoValidRowsError,
)
from logkit_tabular.parser import TabularParser, non_blank_lines


def _many_rows(count: int) -> str:
    lines = ["timestamp,A,B"]
    for i in range(count):
        lines.append(f"2024-01-15 {i // 60:02d}:{i % 60:02d}:00,{i},{i * 2}")
    return "\n".join(lines)


class TestNonBlankLines:
    def test_strips_and_drops_blank(self):
        assert non_blank_lines("a\n\n  \n b \r\nc") == ["a", "b", "c"]


class TestHappyPath:
    """Basic timestamp-first parsing."""

    def test_sensor_csv(self, sensor_csv):
        ds = TabularParser().parse(sensor_csv, "sensor")
        assert ds.source_id == "sensor"
        assert ds.variable_names == ["deviceData.temp", "deviceData.hum"]
        assert ds.row_count == 3
        assert ds.invalid_row_count == 0
        assert ds.delimiter == ","
        assert [p.value for p in ds.series["deviceData.temp"]] == [20.5, 21.0, 21.5]
        assert ds.instants[0] == datetime(2024, 1, 15, 10, 30)

    def test_series_aligned(self, sensor_csv):
        ds = TabularParser().parse(sensor_csv, "sensor")
        temp = [p.instant for p in ds.series["deviceData.temp"]]
        hum = [p.instant for p in ds.series["deviceData.hum"]]
        assert temp == hum

    def test_semicolon_file(self):
        text = "ts;A\n15/01/2024 10.30;1\n15/01/2024 10.31;2\n"
        ds = TabularParser().parse(text, "semi")
        assert ds.delimiter == ";"
        assert [p.value for p in ds.series["A"]] == [1.0, 2.0]

    def test_blank_lines_ignored(self):
        text = "\n\nts,A\n\n2024-01-15 10:30:00,1\n\n"
        ds = TabularParser().parse(text, "blank")
        assert ds.row_count == 1

    def test_quoted_formula_values(self):
        text = 'ts,A\n2024-01-15 10:30:00,="70.8"\n'
        ds = TabularParser().parse(text, "q")
        assert ds.series["A"][0].value == 70.8

    def test_non_numeric_value_becomes_none(self):
        text = "ts,A,B\n2024-01-15 10:30:00,abc,2\n"
        ds = TabularParser().parse(text, "nn")
        assert ds.series["A"][0].value is None
        assert ds.series["B"][0].value == 2.0

    def test_colors_assigned_from_cursor(self, sensor_csv, default_config):
        ds = TabularParser().parse(sensor_csv, "sensor", color_cursor=9)
        assert ds.color_assignment == {
            "deviceData.temp": default_config.palette[9],
            "deviceData.hum": default_config.palette[0],
        }


class TestRowValidation:
    """Invalid rows are counted and skipped, ragged rows padded."""

    def test_ragged_row_padded_with_none(self):
        text = "ts,A,B,C\n2024-01-15 10:30:00,1\n2024-01-15 10:31:00,1,2,3\n"
        ds = TabularParser().parse(text, "ragged")
        assert ds.row_count == 2
        assert [p.value for p in ds.series["B"]] == [None, 2.0]
        assert [p.value for p in ds.series["C"]] == [None, 3.0]
        assert len({len(s) for s in ds.series.values()}) == 1

    def test_bad_timestamp_counted_invalid(self):
        text = "ts,A\nyesterday,1\n2024-01-15 10:30:00,2\n"
        ds = TabularParser().parse(text, "bad")
        assert ds.row_count == 1
        assert ds.invalid_row_count == 1
        assert ds.series["A"][0].value == 2.0

    def test_too_few_fields_counted_invalid(self):
        text = "ts,A\n2024-01-15 10:30:00\n2024-01-15 10:31:00,2\n"
        ds = TabularParser().parse(text, "few")
        assert ds.row_count == 1
        assert ds.invalid_row_count == 1

    def test_extra_fields_ignored(self):
        text = "ts,A\n2024-01-15 10:30:00,1,99\n"
        ds = TabularParser().parse(text, "extra")
        assert ds.variable_names == ["A"]
        assert ds.series["A"][0].value == 1.0


class TestFileErrors:
    def test_empty_text(self):
        with pytest.raises(EmptyFileError) as exc_info:
            TabularParser().parse("", "empty")
        assert exc_info.value.error.code is ErrorCode.E_PARSE_EMPTY

    def test_header_only(self):
        with pytest.raises(EmptyFileError):
            TabularParser().parse("ts,A\n", "header")

    def test_whitespace_only(self):
        with pytest.raises(EmptyFileError):
            TabularParser().parse("  \n\n \n", "ws")

    def test_no_variable_columns(self):
        with pytest.raises(MissingVariableColumnsError):
            TabularParser().parse("timestamp\n2024-01-15 10:30:00\n", "novars")

    def test_no_valid_rows(self):
        with pytest.raises(NoValidRowsError) as exc_info:
            TabularParser().parse("ts,A\nbad,1\nworse,2\n", "invalid")
        assert exc_info.value.error.code is ErrorCode.E_PARSE_NO_VALID_ROWS
        assert exc_info.value.file_name == "invalid"


class TestDateTimeColumnsConvention:
    """Legacy layout with separate date and time columns."""

    @pytest.fixture
    def parser(self):
        return TabularParser(
            TabularParserConfig(convention=FileConvention.DATE_TIME_COLUMNS)
        )

    def test_with_header(self, parser):
        text = "Date\tTime\tTemp\n15/01/2024\t10.30\t20.5\n15/01/2024\t10.31\t21\n"
        ds = parser.parse(text, "legacy")
        assert ds.variable_names == ["Temp"]
        assert ds.row_count == 2
        assert ds.instants[1] == datetime(2024, 1, 15, 10, 31)

    def test_headerless_single_line(self, parser):
        ds = parser.parse("15/01/2024\t10.30\t20.5\t40\n", "single")
        assert ds.variable_names == ["Variable 1", "Variable 2"]
        assert ds.row_count == 1
        assert ds.series["Variable 2"][0].value == 40.0

    def test_header_only_is_empty(self, parser):
        with pytest.raises(EmptyFileError):
            parser.parse("Date\tTime\tTemp\n", "header")


class TestProgress:
    """Progress is monotonic, bounded and reaches 100 exactly once."""

    def test_progress_sequence(self):
        reported: list[float] = []
        config = TabularParserConfig(chunk_size_rows=10, min_progress_step=0.0)
        TabularParser(config).parse(_many_rows(95), "many", reported.append)

        assert reported == sorted(reported)
        assert all(0 <= p <= 100 for p in reported)
        assert reported.count(100.0) == 1
        assert reported[-1] == 100.0
        # One report per chunk between the header and completion milestones.
        chunk_reports = [p for p in reported if 5.0 < p <= 95.0]
        assert len(chunk_reports) == 10

    def test_min_progress_step_throttles(self):
        fine: list[float] = []
        coarse: list[float] = []
        text = _many_rows(200)
        TabularParser(TabularParserConfig(chunk_size_rows=1, min_progress_step=0.0)).parse(
            text, "a", fine.append
        )
        TabularParser(TabularParserConfig(chunk_size_rows=1, min_progress_step=10.0)).parse(
            text, "b", coarse.append
        )
        assert len(coarse) < len(fine)
        assert coarse[-1] == 100.0

    def test_no_progress_on_failure_past_rows(self):
        reported: list[float] = []
        with pytest.raises(NoValidRowsError):
            TabularParser().parse("ts,A\nbad,1\n", "bad", reported.append)
        assert 100.0 not in reported


class TestChunking:
    """Chunk boundaries never change the result."""

    def test_chunk_size_does_not_change_dataset(self):
        text = _many_rows(57)
        small = TabularParser(TabularParserConfig(chunk_size_rows=4)).parse(text, "x")
        large = TabularParser(TabularParserConfig(chunk_size_rows=1000)).parse(text, "x")
        assert small == large

    def test_steps_yield_between_chunks(self):
        parser = TabularParser(TabularParserConfig(chunk_size_rows=10))
        steps = parser._steps(_many_rows(25), "x", None, 0)
        assert list(steps) == [10, 20]


class TestParseAsync:
    @pytest.mark.asyncio
    async def test_async_matches_sync(self):
        config = TabularParserConfig(chunk_size_rows=7, yield_interval_seconds=0)
        text = _many_rows(30)
        parser = TabularParser(config)
        assert await parser.parse_async(text, "x") == parser.parse(text, "x")

    @pytest.mark.asyncio
    async def test_async_suspends_between_chunks(self):
        config = TabularParserConfig(chunk_size_rows=10, yield_interval_seconds=0)
        parser = TabularParser(config)
        with patch("logkit_tabular.parser.asyncio.sleep") as mock_sleep:
            await parser.parse_async(_many_rows(35), "x")
        assert mock_sleep.await_count == 3

    @pytest.mark.asyncio
    async def test_async_errors_propagate(self):
        with pytest.raises(EmptyFileError):
            await TabularParser().parse_async("ts,A", "x")

    def test_cancel_leaves_no_result(self):
        config = TabularParserConfig(chunk_size_rows=1, yield_interval_seconds=0.01)
        parser = TabularParser(config)

        async def _run():
            task = asyncio.create_task(parser.parse_async(_many_rows(500), "x"))
            await asyncio.sleep(0.02)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(_run())


class TestLogging:
    def test_summary_logged(self, sensor_csv, caplog):
        with caplog.at_level(logging.INFO, logger="logkit_tabular"):
            TabularParser().parse(sensor_csv, "sensor")
        assert "valid_rows=3" in caplog.text

    def test_sample_rows_only_when_enabled(self, sensor_csv, caplog):
        with caplog.at_level(logging.DEBUG, logger="logkit_tabular"):
            TabularParser().parse(sensor_csv, "sensor")
        assert "sample=" not in caplog.text

        caplog.clear()
        with caplog.at_level(logging.DEBUG, logger="logkit_tabular"):
            TabularParser(TabularParserConfig(log_sample_data=True)).parse(
                sensor_csv, "sensor"
            )
        assert "sample=" in caplog.text
