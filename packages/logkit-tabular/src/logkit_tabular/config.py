"""Configuration model for the logkit-tabular pipeline.

Provides ``TabularParserConfig`` with all tunable parameters and sensible
defaults.  Supports loading overrides from YAML or JSON files via the
``from_file()`` classmethod.
"""

from __future__ import annotations

import json
import pathlib
from enum import Enum

from pydantic import BaseModel, model_validator


class FileConvention(str, Enum):
    """Column layout of a delimited log file.

    ``timestamp_first`` files carry one combined timestamp column followed by
    variables and always have a header row.  ``date_time_columns`` is the
    older layout with separate date and time columns and an optional header.
    """

    TIMESTAMP_FIRST = "timestamp_first"
    DATE_TIME_COLUMNS = "date_time_columns"


DEFAULT_PALETTE: list[str] = [
    "#3B82F6",
    "#EF4444",
    "#10B981",
    "#F59E0B",
    "#8B5CF6",
    "#F97316",
    "#06B6D4",
    "#84CC16",
    "#EC4899",
    "#6B7280",
]


class TabularParserConfig(BaseModel):
    """All tunable parameters with sensible defaults for log ingestion."""

    # --- Identity ---
    parser_version: str = "logkit_tabular:1.0.0"

    # --- Layout ---
    convention: FileConvention = FileConvention.TIMESTAMP_FIRST

    # --- Chunked parsing / progress ---
    chunk_size_rows: int = 200
    yield_interval_seconds: float = 0.005
    min_progress_step: float = 1.0

    # --- Colors / keying ---
    palette: list[str] = list(DEFAULT_PALETTE)
    key_separator: str = "::"

    # --- Security / Resource Limits ---
    max_file_size_mb: int = 100
    supported_extensions: list[str] = [".csv", ".txt", ".xlsx", ".xls"]

    # --- Spreadsheet ---
    spreadsheet_date_format: str = "%Y-%m-%d %H:%M:%S"

    # --- Export ---
    export_date_format: str = "%d/%m/%Y"
    export_time_format: str = "%H:%M"

    # --- Chart consumers ---
    chart_max_points: int = 3000
    chart_target_points: int = 1500
    display_label_prefixes: list[str] = ["deviceData."]

    # --- Logging / PII Safety ---
    log_sample_data: bool = False

    @model_validator(mode="after")
    def _validate_key_separator(self) -> TabularParserConfig:
        # Duplicate source ids get a ``_<n>`` suffix; a separator built from
        # those characters would make keys of different datasets collide.
        if not self.key_separator:
            raise ValueError("key_separator must not be empty")
        if any(char == "_" or char.isdigit() for char in self.key_separator):
            raise ValueError(
                "key_separator must not contain '_' or digits "
                f"(got {self.key_separator!r})"
            )
        return self

    @classmethod
    def from_file(cls, path: str) -> TabularParserConfig:
        """Load configuration from a YAML or JSON file.

        File format is detected by extension: ``.yaml`` / ``.yml`` for YAML,
        ``.json`` for JSON.  Any keys present in the file override the
        corresponding defaults; keys not present retain their defaults.

        Args:
            path: Filesystem path to the configuration file.

        Returns:
            A fully-populated ``TabularParserConfig`` instance.

        Raises:
            FileNotFoundError: If *path* does not exist.
            ValueError: If the file extension is not recognized.
        """
        file_path = pathlib.Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        suffix = file_path.suffix.lower()

        if suffix in (".yaml", ".yml"):
            import yaml

            with open(file_path) as fh:
                data = yaml.safe_load(fh)
        elif suffix == ".json":
            with open(file_path) as fh:
                data = json.load(fh)
        else:
            raise ValueError(
                f"Unsupported config file extension '{suffix}'. "
                "Use .yaml, .yml, or .json."
            )

        if data is None:
            data = {}

        return cls(**data)
