"""Chunked parsing of delimited log text into a canonical ``Dataset``.

Rows are processed in fixed-size chunks.  :meth:`TabularParser.parse` runs
the chunks back to back; :meth:`TabularParser.parse_async` suspends between
chunks so an event loop can interleave other work and observe progress.
Both drive the same step generator, so they produce identical datasets.

Per-row problems (too few fields, unparsable timestamp) never raise: the row
is counted as invalid and skipped.  File-level problems raise a
:class:`~logkit_tabular.errors.LogIngestException` subclass.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Generator

from logkit_core.models import DataPoint, Dataset
from logkit_core.protocols import ProgressCallback

from logkit_tabular.config import FileConvention, TabularParserConfig
from logkit_tabular.dialect import detect_dialect, split_fields
from logkit_tabular.errors import EmptyFileError, NoValidRowsError
from logkit_tabular.palette import assign_colors
from logkit_tabular.progress import ProgressReporter
from logkit_tabular.sanitizer import sanitize
from logkit_tabular.timestamps import parse_timestamp

logger = logging.getLogger("logkit_tabular")

# Progress milestones (percent).
_PROGRESS_SETUP = 2.0
_PROGRESS_HEADER = 5.0
_PROGRESS_ROWS_SPAN = 90.0
_PROGRESS_ROWS_CEILING = 95.0
_PROGRESS_ROWS_DONE = 98.0

_SAMPLE_ROWS = 3


def non_blank_lines(text: str) -> list[str]:
    """Return the trimmed, non-blank lines of *text*."""
    return [line.strip() for line in text.splitlines() if line.strip()]


class TabularParser:
    """Parse delimited log text into a row-aligned ``Dataset``.

    Parameters
    ----------
    config:
        Pipeline configuration.  Uses defaults when *None*.
    """

    def __init__(self, config: TabularParserConfig | None = None) -> None:
        self._config = config or TabularParserConfig()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def parse(
        self,
        text: str,
        source_id: str,
        on_progress: ProgressCallback | None = None,
        color_cursor: int = 0,
    ) -> Dataset:
        """Parse *text* synchronously.

        Parameters
        ----------
        text:
            Decoded file content.
        source_id:
            Identifier stored on the resulting dataset.
        on_progress:
            Optional callback receiving non-decreasing percentages; 100 is
            reported exactly once, after colors are assigned.
        color_cursor:
            Palette position of the first variable's color.

        Returns
        -------
        Dataset
            The parsed dataset.

        Raises
        ------
        EmptyFileError
            Fewer than two non-blank lines.
        MissingVariableColumnsError
            No variable column in the header.
        NoValidRowsError
            Every data line was invalid.
        """
        steps = self._steps(text, source_id, on_progress, color_cursor)
        while True:
            try:
                next(steps)
            except StopIteration as done:
                return done.value

    async def parse_async(
        self,
        text: str,
        source_id: str,
        on_progress: ProgressCallback | None = None,
        color_cursor: int = 0,
    ) -> Dataset:
        """Parse *text* cooperatively, suspending after every chunk.

        Same contract as :meth:`parse`.  Cancelling the awaiting task leaves
        no partial state anywhere: the dataset only exists once returned.
        """
        steps = self._steps(text, source_id, on_progress, color_cursor)
        while True:
            try:
                next(steps)
            except StopIteration as done:
                return done.value
            await asyncio.sleep(self._config.yield_interval_seconds)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _steps(
        self,
        text: str,
        source_id: str,
        on_progress: ProgressCallback | None,
        color_cursor: int,
    ) -> Generator[int, None, Dataset]:
        """Yield the processed row count after every non-final chunk."""
        config = self._config
        reporter = ProgressReporter(on_progress)

        lines = non_blank_lines(text)
        if not lines or (
            len(lines) < 2 and config.convention is FileConvention.TIMESTAMP_FIRST
        ):
            raise EmptyFileError(
                "File must have at least a header row and one data row",
                file_name=source_id,
            )
        reporter.report(_PROGRESS_SETUP)

        dialect = detect_dialect(lines[0], config.convention, file_name=source_id)
        if dialect.has_header and len(lines) < 2:
            raise EmptyFileError(
                "File must have at least a header row and one data row",
                file_name=source_id,
            )
        data_lines = lines[1:] if dialect.has_header else lines
        names = dialect.variable_names
        timestamp_fields = dialect.timestamp_fields
        min_fields = timestamp_fields + 1

        logger.debug(
            "logkit_tabular | file=%s | delimiter=%r | variables=%d | rows=%d",
            source_id,
            dialect.delimiter,
            len(names),
            len(data_lines),
        )
        if config.log_sample_data:
            for sample in data_lines[:_SAMPLE_ROWS]:
                logger.debug("logkit_tabular | file=%s | sample=%r", source_id, sample)

        series: dict[str, list[DataPoint]] = {name: [] for name in names}
        valid_rows = 0
        invalid_rows = 0
        reporter.report(_PROGRESS_HEADER)
        last_reported = _PROGRESS_HEADER

        total = len(data_lines)
        chunk_size = max(1, config.chunk_size_rows)

        for start in range(0, total, chunk_size):
            for line in data_lines[start : start + chunk_size]:
                parts = split_fields(line, dialect.delimiter)
                if len(parts) < min_fields:
                    invalid_rows += 1
                    continue

                stamp = " ".join(parts[:timestamp_fields])
                instant = parse_timestamp(stamp)
                if instant is None:
                    invalid_rows += 1
                    continue

                valid_rows += 1
                values = parts[timestamp_fields:]
                for index, name in enumerate(names):
                    value = sanitize(values[index]) if index < len(values) else None
                    series[name].append(DataPoint(instant=instant, value=value))

            processed = min(start + chunk_size, total)
            progress = min(
                _PROGRESS_HEADER + processed / total * _PROGRESS_ROWS_SPAN,
                _PROGRESS_ROWS_CEILING,
            )
            if progress > last_reported + config.min_progress_step:
                reporter.report(progress)
                last_reported = progress

            if processed < total:
                yield processed

        reporter.report(_PROGRESS_ROWS_DONE)
        logger.info(
            "logkit_tabular | file=%s | valid_rows=%d | invalid_rows=%d",
            source_id,
            valid_rows,
            invalid_rows,
        )

        if valid_rows == 0:
            raise NoValidRowsError("No valid data rows found", file_name=source_id)

        colors, _ = assign_colors(names, color_cursor, config.palette)
        dataset = Dataset(
            source_id=source_id,
            variable_names=names,
            series=series,
            row_count=valid_rows,
            invalid_row_count=invalid_rows,
            color_assignment=colors,
            delimiter=dialect.delimiter,
        )
        reporter.report(100.0)
        return dataset
