"""LogRouter -- orchestrator and public API for the logkit-tabular pipeline.

Routes log files through the full ingestion pipeline:

1. Security scan via :class:`LogSecurityScanner`.
2. Read raw bytes.
3. Convert: spreadsheets via :class:`SpreadsheetAdapter`, text via
   :func:`decode_text` and :class:`TabularParser`.
4. Register the parsed dataset with the :class:`DatasetRegistry`.
5. Assemble and return :class:`ProcessingResult`.

The router enforces **fail-closed** semantics per file: any fatal error
returns a result with error codes and leaves the registry untouched.  In a
batch, one bad file never stops the remaining ones.
"""

from __future__ import annotations

import logging
import os
import pathlib
import time

from charset_normalizer import from_bytes

from logkit_core.models import Dataset
from logkit_core.protocols import ProgressCallback

from logkit_tabular.config import TabularParserConfig
from logkit_tabular.errors import (
    ErrorCode,
    IngestError,
    LogIngestException,
    UnreadableFileError,
)
from logkit_tabular.models import BatchResult, ProcessingResult
from logkit_tabular.parser import TabularParser
from logkit_tabular.progress import ProgressReporter, scaled
from logkit_tabular.registry import DatasetRegistry
from logkit_tabular.security import LogSecurityScanner
from logkit_tabular.spreadsheet import SpreadsheetAdapter

logger = logging.getLogger("logkit_tabular")

_SPREADSHEET_EXTENSIONS = (".xlsx", ".xls")

# Per-file progress milestones (percent).
_PROGRESS_LOADED = 90.0
_PROGRESS_REGISTERING = 95.0


def decode_text(raw: bytes, file_name: str | None = None) -> tuple[str, list[IngestError]]:
    """Decode file bytes as UTF-8 (BOM-aware), falling back to detection.

    Returns the text and any ``W_ENCODING_FALLBACK`` warning raised.
    """
    try:
        return raw.decode("utf-8-sig"), []
    except UnicodeDecodeError:
        pass

    match = from_bytes(raw).best()
    if match is not None:
        text = str(match)
        encoding = match.encoding
    else:
        text = raw.decode("utf-8", errors="replace")
        encoding = "utf-8 (replacement)"

    logger.warning(
        "logkit_tabular | file=%s | not valid UTF-8 | decoded as %s",
        file_name,
        encoding,
    )
    warning = IngestError(
        code=ErrorCode.W_ENCODING_FALLBACK,
        message=f"File is not valid UTF-8; decoded as {encoding}",
        file_name=file_name,
        stage="read",
        recoverable=True,
    )
    return text, [warning]


class LogRouter:
    """Top-level orchestrator for the logkit-tabular pipeline.

    Builds all internal components from the config, then exposes
    :meth:`can_handle`, :meth:`process`, :meth:`process_batch` and their
    async counterparts as the public API.

    Parameters
    ----------
    registry:
        Session registry that successful files are merged into.  A fresh
        one is created when *None*.
    config:
        Pipeline configuration.  Uses the registry's config, or defaults,
        when *None*.
    """

    def __init__(
        self,
        registry: DatasetRegistry | None = None,
        config: TabularParserConfig | None = None,
    ) -> None:
        if config is None:
            config = registry.config if registry is not None else TabularParserConfig()
        self._config = config
        self._registry = registry or DatasetRegistry(config)
        self._parser = TabularParser(config)
        self._spreadsheet = SpreadsheetAdapter(config, self._parser)
        self._security_scanner = LogSecurityScanner(config)

    @property
    def registry(self) -> DatasetRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def can_handle(self, file_path: str) -> bool:
        """Return True if *file_path* has a supported extension."""
        extensions = tuple(ext.lower() for ext in self._config.supported_extensions)
        return file_path.lower().endswith(extensions)

    def process(
        self,
        file_path: str,
        on_progress: ProgressCallback | None = None,
    ) -> ProcessingResult:
        """Parse a single file and merge it into the registry.

        Parameters
        ----------
        file_path:
            Filesystem path to the log file.
        on_progress:
            Optional callback receiving non-decreasing percentages.

        Returns
        -------
        ProcessingResult
            The fully-assembled result.
        """
        start = time.monotonic()
        reporter = ProgressReporter(on_progress)
        preflight = self._preflight(file_path, start)
        if isinstance(preflight, ProcessingResult):
            return preflight

        load_progress = scaled(reporter.report, 0.0, _PROGRESS_LOADED)
        try:
            raw = self._read_bytes(file_path)
            if self._is_spreadsheet(file_path):
                dataset, load_warnings = self._spreadsheet.load_with_warnings(
                    raw,
                    os.path.basename(file_path),
                    load_progress,
                    file_name=os.path.basename(file_path),
                )
            else:
                text, load_warnings = decode_text(raw, os.path.basename(file_path))
                dataset = self._parser.parse(
                    text, os.path.basename(file_path), load_progress
                )
        except (LogIngestException, ImportError) as exc:
            return self._failure(file_path, exc, preflight, start)

        return self._register(file_path, dataset, preflight + load_warnings, reporter, start)

    async def aprocess(
        self,
        file_path: str,
        on_progress: ProgressCallback | None = None,
    ) -> ProcessingResult:
        """Async variant of :meth:`process`.

        Text files are parsed cooperatively; spreadsheet conversion is
        offloaded to a thread.  The registry is only touched after the
        whole file parsed, so cancelling the task leaves it unchanged.
        """
        start = time.monotonic()
        reporter = ProgressReporter(on_progress)
        preflight = self._preflight(file_path, start)
        if isinstance(preflight, ProcessingResult):
            return preflight

        load_progress = scaled(reporter.report, 0.0, _PROGRESS_LOADED)
        try:
            raw = self._read_bytes(file_path)
            if self._is_spreadsheet(file_path):
                dataset, load_warnings = await self._spreadsheet.load_async(
                    raw,
                    os.path.basename(file_path),
                    load_progress,
                    file_name=os.path.basename(file_path),
                )
            else:
                text, load_warnings = decode_text(raw, os.path.basename(file_path))
                dataset = await self._parser.parse_async(
                    text, os.path.basename(file_path), load_progress
                )
        except (LogIngestException, ImportError) as exc:
            return self._failure(file_path, exc, preflight, start)

        return self._register(file_path, dataset, preflight + load_warnings, reporter, start)

    def process_batch(
        self,
        file_paths: list[str],
        on_progress: ProgressCallback | None = None,
    ) -> BatchResult:
        """Process several files in order; failures are isolated per file."""
        reporter = ProgressReporter(on_progress)
        batch = BatchResult()
        total = len(file_paths)
        for index, file_path in enumerate(file_paths):
            base = index / total * 100.0
            step = 100.0 / total
            reporter.report(base)
            result = self.process(file_path, scaled(reporter.report, base, base + step))
            reporter.report(base + step)
            batch.results.append(result)
        self._log_batch(batch)
        return batch

    async def aprocess_batch(
        self,
        file_paths: list[str],
        on_progress: ProgressCallback | None = None,
    ) -> BatchResult:
        """Async variant of :meth:`process_batch`."""
        reporter = ProgressReporter(on_progress)
        batch = BatchResult()
        total = len(file_paths)
        for index, file_path in enumerate(file_paths):
            base = index / total * 100.0
            step = 100.0 / total
            reporter.report(base)
            result = await self.aprocess(
                file_path, scaled(reporter.report, base, base + step)
            )
            reporter.report(base + step)
            batch.results.append(result)
        self._log_batch(batch)
        return batch

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _is_spreadsheet(self, file_path: str) -> bool:
        return file_path.lower().endswith(_SPREADSHEET_EXTENSIONS)

    @staticmethod
    def _read_bytes(file_path: str) -> bytes:
        try:
            return pathlib.Path(file_path).read_bytes()
        except OSError as exc:
            raise UnreadableFileError(
                f"Failed to read file: {exc}",
                file_name=os.path.basename(file_path),
                stage="read",
            ) from exc

    def _preflight(
        self, file_path: str, start: float
    ) -> list[IngestError] | ProcessingResult:
        """Run the security scan; a fatal finding becomes a failed result."""
        findings = self._security_scanner.scan(file_path)
        fatal = [e for e in findings if e.code.startswith("E_")]
        if not fatal:
            return findings

        logger.error(
            "logkit_tabular | file=%s | code=%s | detail=%s",
            os.path.basename(file_path),
            fatal[0].code.value,
            fatal[0].message,
        )
        return ProcessingResult(
            file_path=file_path,
            errors=[e.code.value for e in fatal],
            warnings=[e.code.value for e in findings if not e.code.startswith("E_")],
            error_details=findings,
            processing_time_seconds=time.monotonic() - start,
        )

    def _failure(
        self,
        file_path: str,
        exc: Exception,
        warnings: list[IngestError],
        start: float,
    ) -> ProcessingResult:
        if isinstance(exc, LogIngestException):
            err = exc.error
        else:
            err = IngestError(
                code=ErrorCode.E_SPREADSHEET_XLRD_UNAVAILABLE,
                message=f"xlrd not available: {exc}",
                file_name=os.path.basename(file_path),
                stage="convert",
            )
        logger.error(
            "logkit_tabular | file=%s | code=%s | detail=%s",
            os.path.basename(file_path),
            err.code.value,
            err.message,
        )
        return ProcessingResult(
            file_path=file_path,
            errors=[err.code.value],
            warnings=[w.code.value for w in warnings],
            error_details=[*warnings, err],
            processing_time_seconds=time.monotonic() - start,
        )

    def _register(
        self,
        file_path: str,
        dataset: Dataset,
        warnings: list[IngestError],
        reporter: ProgressReporter,
        start: float,
    ) -> ProcessingResult:
        reporter.report(_PROGRESS_REGISTERING)
        stored = self._registry.register(dataset)

        if stored.invalid_row_count:
            warnings = [
                *warnings,
                IngestError(
                    code=ErrorCode.W_ROWS_SKIPPED,
                    message=f"{stored.invalid_row_count} invalid row(s) skipped",
                    file_name=os.path.basename(file_path),
                    stage="parse",
                    recoverable=True,
                ),
            ]

        elapsed = time.monotonic() - start
        reporter.report(100.0)
        logger.info(
            "logkit_tabular | file=%s | source_id=%s | variables=%d | "
            "rows=%d | invalid=%d | time=%.1fs",
            os.path.basename(file_path),
            stored.source_id,
            len(stored.variable_names),
            stored.row_count,
            stored.invalid_row_count,
            elapsed,
        )
        return ProcessingResult(
            file_path=file_path,
            source_id=stored.source_id,
            variable_keys=self._registry.keys_for(stored.source_id),
            row_count=stored.row_count,
            invalid_row_count=stored.invalid_row_count,
            warnings=[w.code.value for w in warnings],
            error_details=list(warnings),
            processing_time_seconds=elapsed,
        )

    @staticmethod
    def _log_batch(batch: BatchResult) -> None:
        logger.info(
            "logkit_tabular | batch complete | loaded=%d | failed=%d",
            batch.success_count,
            batch.error_count,
        )
