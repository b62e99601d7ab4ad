"""logkit-tabular -- Timestamped tabular log ingestion (CSV / TXT / XLSX / XLS).

Public API re-exports for convenient access.
"""

from logkit_tabular.config import DEFAULT_PALETTE, FileConvention, TabularParserConfig
from logkit_tabular.dialect import detect_delimiter, detect_dialect
from logkit_tabular.errors import (
    EmptyFileError,
    ErrorCode,
    IngestError,
    LogIngestException,
    MissingVariableColumnsError,
    NoValidRowsError,
    UnreadableFileError,
)
from logkit_tabular.export import export_csv, export_rows, write_csv
from logkit_tabular.models import (
    BatchResult,
    DialectResult,
    ProcessingResult,
    SessionState,
    SessionSummary,
    Stats,
    VariableRef,
    VariableStats,
)
from logkit_tabular.palette import assign_colors
from logkit_tabular.parser import TabularParser
from logkit_tabular.registry import DatasetRegistry, clean_source_id, make_variable_key
from logkit_tabular.router import LogRouter, decode_text
from logkit_tabular.sanitizer import is_numeric, sanitize
from logkit_tabular.security import LogSecurityScanner
from logkit_tabular.spreadsheet import SheetText, SpreadsheetAdapter
from logkit_tabular.stats import compute_stats, selection_stats, variable_stats
from logkit_tabular.timestamps import parse_timestamp
from logkit_tabular.views import (
    axis_groups,
    chart_points,
    date_range_label,
    decimate,
    display_label,
)

__all__ = [
    "LogRouter",
    "TabularParserConfig",
    "FileConvention",
    "DEFAULT_PALETTE",
    "ErrorCode",
    "IngestError",
    "LogIngestException",
    "EmptyFileError",
    "MissingVariableColumnsError",
    "NoValidRowsError",
    "UnreadableFileError",
    "DialectResult",
    "VariableRef",
    "SessionState",
    "SessionSummary",
    "Stats",
    "VariableStats",
    "ProcessingResult",
    "BatchResult",
    "TabularParser",
    "SpreadsheetAdapter",
    "SheetText",
    "DatasetRegistry",
    "LogSecurityScanner",
    "sanitize",
    "is_numeric",
    "parse_timestamp",
    "detect_delimiter",
    "detect_dialect",
    "assign_colors",
    "clean_source_id",
    "make_variable_key",
    "decode_text",
    "compute_stats",
    "variable_stats",
    "selection_stats",
    "export_rows",
    "export_csv",
    "write_csv",
    "display_label",
    "decimate",
    "chart_points",
    "axis_groups",
    "date_range_label",
]
