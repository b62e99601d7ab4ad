"""Spreadsheet adapter -- first-sheet workbook rows as delimited log text.

Workbooks are converted into tab-joined lines (one per non-empty row) and
handed to :class:`~logkit_tabular.parser.TabularParser`, so spreadsheets and
text files share one parsing path.  Only the first sheet is read; further
sheets produce a ``W_EXTRA_SHEETS_IGNORED`` warning.

``.xlsx`` workbooks are opened with openpyxl (cached values only).  When
openpyxl cannot open the file, pandas ``read_excel`` is tried before giving
up (``W_PARSER_FALLBACK``).  Legacy ``.xls`` workbooks are read with xlrd.
"""

from __future__ import annotations

import asyncio
import io
import logging
from datetime import date, datetime, time
from typing import Any

import openpyxl
import pandas as pd
from pydantic import BaseModel

from logkit_core.models import Dataset
from logkit_core.protocols import ProgressCallback

from logkit_tabular.config import TabularParserConfig
from logkit_tabular.errors import (
    EmptyFileError,
    ErrorCode,
    IngestError,
    UnreadableFileError,
)
from logkit_tabular.parser import TabularParser
from logkit_tabular.progress import ProgressReporter, scaled

logger = logging.getLogger("logkit_tabular")

# Import guard: xlrd is an optional dependency
try:
    import xlrd  # type: ignore[import-untyped]
except ImportError:
    xlrd = None  # type: ignore[assignment]

# OLE2 magic bytes used by legacy .xls files
OLE2_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"

_PROGRESS_CONVERTED = 50.0


class SheetText(BaseModel):
    """The first sheet of a workbook rendered as tab-delimited text."""

    sheet_name: str
    text: str
    row_count: int
    warnings: list[IngestError] = []


def _format_value(value: Any, config: TabularParserConfig) -> str:
    """Stringify one openpyxl / pandas cell value."""
    if value is None:
        return ""
    if isinstance(value, float) and value != value:
        return ""
    if value is pd.NaT:
        return ""
    if isinstance(value, datetime):
        return value.strftime(config.spreadsheet_date_format)
    if isinstance(value, date):
        return datetime.combine(value, time()).strftime(config.spreadsheet_date_format)
    if isinstance(value, time):
        return value.strftime("%H:%M:%S")
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).replace("\t", " ").replace("\n", " ")


def _format_xlrd_cell(cell, workbook, config: TabularParserConfig) -> str:
    """Stringify one xlrd cell, resolving date serials with the book datemode."""
    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
        return ""
    if cell.ctype == xlrd.XL_CELL_DATE:
        try:
            dt = xlrd.xldate_as_datetime(cell.value, workbook.datemode)
        except Exception as exc:
            logger.warning(
                "logkit_tabular | date conversion failed: %s | falling back to str",
                exc,
            )
            return str(cell.value)
        return dt.strftime(config.spreadsheet_date_format)
    if cell.ctype == xlrd.XL_CELL_BOOLEAN:
        return "TRUE" if cell.value else "FALSE"
    if cell.ctype == xlrd.XL_CELL_ERROR:
        return ""
    return _format_value(cell.value, config)


def _join_rows(rows: list[list[str]]) -> tuple[str, int]:
    """Tab-join rows, dropping trailing empty cells and all-empty rows."""
    lines: list[str] = []
    for cells in rows:
        while cells and not cells[-1]:
            cells.pop()
        if cells:
            lines.append("\t".join(cells))
    return "\n".join(lines), len(lines)


class SpreadsheetAdapter:
    """Convert the first sheet of a workbook and parse it as a log file.

    Parameters
    ----------
    config:
        Pipeline configuration.  Uses defaults when *None*.
    parser:
        Parser used for the converted text.  Built from *config* when *None*.
    """

    def __init__(
        self,
        config: TabularParserConfig | None = None,
        parser: TabularParser | None = None,
    ) -> None:
        self._config = config or TabularParserConfig()
        self._parser = parser or TabularParser(self._config)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def convert(self, binary: bytes, file_name: str | None = None) -> SheetText:
        """Render the first sheet of *binary* as tab-delimited text.

        Raises
        ------
        UnreadableFileError
            If no reader can open the workbook.
        EmptyFileError
            If the sheet has fewer than two non-empty rows.
        ImportError
            If the workbook is a legacy ``.xls`` and xlrd is not installed.
        """
        if binary.startswith(OLE2_MAGIC):
            sheet = self._convert_xls(binary, file_name)
        else:
            sheet = self._convert_xlsx(binary, file_name)

        if sheet.row_count < 2:
            raise EmptyFileError(
                "Excel file must have at least a header row and one data row",
                file_name=file_name,
            )
        return sheet

    def load(
        self,
        binary: bytes,
        source_id: str,
        on_progress: ProgressCallback | None = None,
        file_name: str | None = None,
        color_cursor: int = 0,
    ) -> Dataset:
        """Convert and parse a workbook.  See :meth:`load_with_warnings`."""
        dataset, _ = self.load_with_warnings(
            binary, source_id, on_progress, file_name, color_cursor
        )
        return dataset

    def load_with_warnings(
        self,
        binary: bytes,
        source_id: str,
        on_progress: ProgressCallback | None = None,
        file_name: str | None = None,
        color_cursor: int = 0,
    ) -> tuple[Dataset, list[IngestError]]:
        """Convert and parse a workbook, returning non-fatal warnings too.

        Conversion covers the first half of the progress range and parsing
        the second half, so the caller sees one monotonic 0-100 sequence.
        """
        reporter = ProgressReporter(on_progress)
        sheet = self.convert(binary, file_name or source_id)
        reporter.report(_PROGRESS_CONVERTED)
        dataset = self._parser.parse(
            sheet.text,
            source_id,
            scaled(reporter.report, _PROGRESS_CONVERTED, 100.0),
            color_cursor,
        )
        return dataset, sheet.warnings

    async def load_async(
        self,
        binary: bytes,
        source_id: str,
        on_progress: ProgressCallback | None = None,
        file_name: str | None = None,
        color_cursor: int = 0,
    ) -> tuple[Dataset, list[IngestError]]:
        """Async variant of :meth:`load_with_warnings`.

        Workbook conversion is offloaded to a thread via
        ``asyncio.to_thread()``; parsing runs cooperatively.
        """
        reporter = ProgressReporter(on_progress)
        sheet = await asyncio.to_thread(self.convert, binary, file_name or source_id)
        reporter.report(_PROGRESS_CONVERTED)
        dataset = await self._parser.parse_async(
            sheet.text,
            source_id,
            scaled(reporter.report, _PROGRESS_CONVERTED, 100.0),
            color_cursor,
        )
        return dataset, sheet.warnings

    # ------------------------------------------------------------------
    # Readers
    # ------------------------------------------------------------------

    def _convert_xlsx(self, binary: bytes, file_name: str | None) -> SheetText:
        warnings: list[IngestError] = []
        try:
            wb = openpyxl.load_workbook(
                io.BytesIO(binary), read_only=True, data_only=True
            )
        except Exception as exc:
            logger.warning(
                "logkit_tabular | file=%s | openpyxl could not open workbook: %s",
                file_name,
                exc,
            )
            warnings.append(
                IngestError(
                    code=ErrorCode.W_PARSER_FALLBACK,
                    message=f"openpyxl failed ({exc}); fell back to pandas",
                    file_name=file_name,
                    stage="convert",
                    recoverable=True,
                )
            )
            return self._convert_via_pandas(binary, file_name, warnings)

        try:
            if not wb.worksheets:
                raise UnreadableFileError(
                    "Workbook contains no worksheets", file_name=file_name
                )
            ws = wb.worksheets[0]
            if len(wb.sheetnames) > 1:
                warnings.append(self._extra_sheets_warning(wb.sheetnames, file_name))
            # Read-only mode parses sheet XML lazily, so a corrupt sheet part
            # only fails here.
            try:
                rows = [
                    [_format_value(value, self._config) for value in row]
                    for row in ws.iter_rows(values_only=True)
                ]
            except Exception as exc:
                raise UnreadableFileError(
                    f"Failed to read worksheet '{ws.title}': {exc}",
                    file_name=file_name,
                ) from exc
            sheet_name = ws.title
        finally:
            wb.close()

        text, row_count = _join_rows(rows)
        return SheetText(
            sheet_name=sheet_name, text=text, row_count=row_count, warnings=warnings
        )

    def _convert_via_pandas(
        self, binary: bytes, file_name: str | None, warnings: list[IngestError]
    ) -> SheetText:
        try:
            sheets = pd.read_excel(
                io.BytesIO(binary), sheet_name=None, header=None, dtype=object
            )
        except Exception as exc:
            raise UnreadableFileError(
                f"Failed to read Excel file: {exc}", file_name=file_name
            ) from exc

        if not sheets:
            raise UnreadableFileError(
                "Workbook contains no worksheets", file_name=file_name
            )
        sheet_names = list(sheets)
        if len(sheet_names) > 1:
            warnings.append(self._extra_sheets_warning(sheet_names, file_name))

        df = sheets[sheet_names[0]]
        rows = [
            [_format_value(value, self._config) for value in record]
            for record in df.itertuples(index=False, name=None)
        ]
        text, row_count = _join_rows(rows)
        return SheetText(
            sheet_name=str(sheet_names[0]),
            text=text,
            row_count=row_count,
            warnings=warnings,
        )

    def _convert_xls(self, binary: bytes, file_name: str | None) -> SheetText:
        if xlrd is None:
            raise ImportError(
                "xlrd is required to process .xls files. "
                "Install it with: pip install xlrd"
            )
        try:
            workbook = xlrd.open_workbook(file_contents=binary)
        except Exception as exc:
            raise UnreadableFileError(
                f"Failed to read Excel file: {exc}", file_name=file_name
            ) from exc

        warnings: list[IngestError] = []
        if workbook.nsheets == 0:
            raise UnreadableFileError(
                "Workbook contains no worksheets", file_name=file_name
            )
        if workbook.nsheets > 1:
            warnings.append(
                self._extra_sheets_warning(workbook.sheet_names(), file_name)
            )

        sheet = workbook.sheet_by_index(0)
        rows = [
            [
                _format_xlrd_cell(sheet.cell(row_idx, col_idx), workbook, self._config)
                for col_idx in range(sheet.ncols)
            ]
            for row_idx in range(sheet.nrows)
        ]
        text, row_count = _join_rows(rows)
        return SheetText(
            sheet_name=sheet.name, text=text, row_count=row_count, warnings=warnings
        )

    @staticmethod
    def _extra_sheets_warning(
        sheet_names: list[str], file_name: str | None
    ) -> IngestError:
        ignored = ", ".join(str(name) for name in sheet_names[1:])
        logger.info(
            "logkit_tabular | file=%s | only first sheet read | ignored=%s",
            file_name,
            ignored,
        )
        return IngestError(
            code=ErrorCode.W_EXTRA_SHEETS_IGNORED,
            message=f"Only the first sheet is read; ignored: {ignored}",
            file_name=file_name,
            stage="convert",
            recoverable=True,
        )
