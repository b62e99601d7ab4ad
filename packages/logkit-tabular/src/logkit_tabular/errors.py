"""Error codes, structured error model and raisable exceptions for logkit-tabular.

``ErrorCode`` contains all error/warning codes relevant to log ingestion.
``IngestError`` extends ``BaseIngestError`` with a ``file_name`` field for
location context.  ``LogIngestException`` and its subclasses wrap an
``IngestError`` so file-level failures can travel through ``raise``/``except``.
"""

from __future__ import annotations

from enum import Enum

from logkit_core.errors import BaseIngestError


class ErrorCode(str, Enum):
    """Error codes for log ingestion.

    Values equal their names so they are stable strings suitable for
    metrics and alerting.  ``E_`` prefix = fatal, ``W_`` prefix = warning.
    """

    # Security
    E_SECURITY_BAD_EXTENSION = "E_SECURITY_BAD_EXTENSION"
    E_SECURITY_TOO_LARGE = "E_SECURITY_TOO_LARGE"

    # Parse
    E_PARSE_CORRUPT = "E_PARSE_CORRUPT"
    E_PARSE_EMPTY = "E_PARSE_EMPTY"
    E_PARSE_UNREADABLE = "E_PARSE_UNREADABLE"
    E_PARSE_NO_VARIABLES = "E_PARSE_NO_VARIABLES"
    E_PARSE_NO_VALID_ROWS = "E_PARSE_NO_VALID_ROWS"
    E_SPREADSHEET_XLRD_UNAVAILABLE = "E_SPREADSHEET_XLRD_UNAVAILABLE"

    # Warnings (non-fatal)
    W_LARGE_FILE = "W_LARGE_FILE"
    W_PARSER_FALLBACK = "W_PARSER_FALLBACK"
    W_ENCODING_FALLBACK = "W_ENCODING_FALLBACK"
    W_ROWS_SKIPPED = "W_ROWS_SKIPPED"
    W_EXTRA_SHEETS_IGNORED = "W_EXTRA_SHEETS_IGNORED"


class IngestError(BaseIngestError):
    """Structured error with log-file location context.

    Extends the core ``BaseIngestError`` with the ``file_name`` that caused
    the issue.
    """

    code: ErrorCode  # type: ignore[assignment]  # narrows base str to ErrorCode
    file_name: str | None = None


class LogIngestException(Exception):
    """Raisable exception wrapping an ``IngestError`` data model.

    Subclasses pin the error code; the structured error is available as the
    ``.error`` attribute for inspection and serialization.
    """

    code: ErrorCode = ErrorCode.E_PARSE_CORRUPT

    def __init__(
        self,
        message: str,
        *,
        file_name: str | None = None,
        stage: str | None = "parse",
    ) -> None:
        self.error = IngestError(
            code=self.code,
            message=message,
            file_name=file_name,
            stage=stage,
            recoverable=False,
        )
        super().__init__(message)

    @property
    def message(self) -> str:
        return self.error.message

    @property
    def file_name(self) -> str | None:
        return self.error.file_name


class EmptyFileError(LogIngestException):
    """Fewer than two non-blank lines (header plus one data row)."""

    code = ErrorCode.E_PARSE_EMPTY


class MissingVariableColumnsError(LogIngestException):
    """Header carries no variable columns after the timestamp column."""

    code = ErrorCode.E_PARSE_NO_VARIABLES


class NoValidRowsError(LogIngestException):
    """Every data line failed timestamp parsing or had too few fields."""

    code = ErrorCode.E_PARSE_NO_VALID_ROWS


class UnreadableFileError(LogIngestException):
    """The underlying bytes could not be read or opened."""

    code = ErrorCode.E_PARSE_UNREADABLE
