"""Delimiter and header detection for delimited log files.

Looks only at the first non-blank line.  The delimiter is the first entry of
the preference order that splits that line into at least two fields; the
last entry is used when none does.
"""

from __future__ import annotations

import logging

from logkit_tabular.config import FileConvention
from logkit_tabular.errors import MissingVariableColumnsError
from logkit_tabular.models import DialectResult
from logkit_tabular.sanitizer import is_numeric

logger = logging.getLogger("logkit_tabular")

TIMESTAMP_FIRST_DELIMITERS: tuple[str, ...] = (",", "\t", ";")
DATE_TIME_DELIMITERS: tuple[str, ...] = ("\t", ",", ";")


def split_fields(line: str, delimiter: str) -> list[str]:
    """Split *line* on *delimiter* and trim every field."""
    return [field.strip() for field in line.split(delimiter)]


def detect_delimiter(line: str, preference: tuple[str, ...]) -> str:
    """Return the first delimiter in *preference* yielding >= 2 fields."""
    for delimiter in preference:
        if len(line.split(delimiter)) >= 2:
            return delimiter
    return preference[-1]


def unique_names(names: list[str]) -> list[str]:
    """Make column names unique within one dataset.

    Empty names become ``Variable <n>`` (1-based column position) and
    repeated names get a `` (<k>)`` suffix.
    """
    seen: dict[str, int] = {}
    result: list[str] = []
    for position, name in enumerate(names, start=1):
        base = name or f"Variable {position}"
        candidate = base
        if candidate in seen:
            suffix = seen[base]
            while candidate in seen:
                suffix += 1
                candidate = f"{base} ({suffix})"
            seen[base] = suffix
        seen[candidate] = 1
        result.append(candidate)
    return result


def detect_dialect(
    first_line: str,
    convention: FileConvention = FileConvention.TIMESTAMP_FIRST,
    file_name: str | None = None,
) -> DialectResult:
    """Infer the delimiter, header presence and variable names.

    Raises:
        MissingVariableColumnsError: If the layout leaves no variable column.
    """
    if convention is FileConvention.DATE_TIME_COLUMNS:
        return _detect_date_time_columns(first_line, file_name)

    delimiter = detect_delimiter(first_line, TIMESTAMP_FIRST_DELIMITERS)
    header = split_fields(first_line, delimiter)
    if len(header) < 2:
        raise MissingVariableColumnsError(
            "File must have at least timestamp and one variable column",
            file_name=file_name,
        )
    return DialectResult(
        delimiter=delimiter,
        has_header=True,
        variable_names=unique_names(header[1:]),
        timestamp_fields=1,
    )


def _detect_date_time_columns(
    first_line: str, file_name: str | None
) -> DialectResult:
    delimiter = detect_delimiter(first_line, DATE_TIME_DELIMITERS)
    fields = split_fields(first_line, delimiter)
    non_empty = [f for f in fields if f]

    if len(non_empty) >= 3 and not is_numeric(non_empty[2]):
        names = fields[2:]
        has_header = True
    else:
        names = [f"Variable {i}" for i in range(1, len(fields) - 1)]
        has_header = False

    if not names:
        raise MissingVariableColumnsError(
            "File must have date, time and at least one variable column",
            file_name=file_name,
        )

    logger.debug(
        "logkit_tabular | file=%s | legacy layout | header=%s | variables=%d",
        file_name,
        has_header,
        len(names),
    )
    return DialectResult(
        delimiter=delimiter,
        has_header=has_header,
        variable_names=unique_names(names),
        timestamp_fields=2,
    )
