"""Package-specific Pydantic models for the logkit-tabular package.

Contains the dialect detection result, session state, statistics and the
per-file / per-batch processing results.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from logkit_core.errors import BaseIngestError
from logkit_core.models import Dataset, VariableConfig


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------


class DialectResult(BaseModel):
    """How the rows of a delimited file are laid out."""

    delimiter: str
    has_header: bool
    variable_names: list[str]
    timestamp_fields: int = 1


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class VariableRef(BaseModel):
    """The ``(source_id, variable_name)`` pair a global variable key names."""

    source_id: str
    variable_name: str


class SessionState(BaseModel):
    """In-memory state of one analysis session.

    ``selected_keys`` preserves insertion order, which drives legend and axis
    ordering in chart consumers.  ``key_index`` is the reverse index from
    global variable key to the dataset column it names.
    """

    datasets: dict[str, Dataset] = {}
    variable_configs: dict[str, VariableConfig] = {}
    selected_keys: list[str] = []
    color_cursor: int = 0
    key_index: dict[str, VariableRef] = {}


class SessionSummary(BaseModel):
    """Headline counters for the loaded session."""

    dataset_count: int
    variable_count: int
    data_point_count: int


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


class Stats(BaseModel):
    """Descriptive statistics over the non-null values of one variable."""

    min: float
    max: float
    mean: float
    median: float
    std_dev: float
    sum: float
    count: int
    range: float


class VariableStats(Stats):
    """``Stats`` labelled with the variable they describe."""

    key: str
    label: str
    color: str
    range_start: datetime | None = None
    range_end: datetime | None = None


# ---------------------------------------------------------------------------
# Processing results
# ---------------------------------------------------------------------------


class ProcessingResult(BaseModel):
    """Final result of ingesting one file via ``LogRouter.process()``."""

    file_path: str
    source_id: str | None = None
    variable_keys: list[str] = []
    row_count: int = 0
    invalid_row_count: int = 0
    errors: list[str] = []
    warnings: list[str] = []
    error_details: list[BaseIngestError] = []
    processing_time_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.errors


class BatchResult(BaseModel):
    """Outcome of a multi-file upload via ``LogRouter.process_batch()``."""

    results: list[ProcessingResult] = []

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def error_count(self) -> int:
        return sum(1 for r in self.results if not r.ok)
