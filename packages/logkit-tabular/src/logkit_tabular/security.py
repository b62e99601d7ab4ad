"""Pre-flight security scanner for log files.

Rejects unsupported or oversized files before any bytes are parsed.
Checks file extension, existence, emptiness and size.
"""

from __future__ import annotations

import logging
import os

from logkit_tabular.config import TabularParserConfig
from logkit_tabular.errors import ErrorCode, IngestError

logger = logging.getLogger("logkit_tabular")

_LARGE_FILE_THRESHOLD_MB = 10


class LogSecurityScanner:
    """Run pre-flight checks on a log file.

    Returns a list of errors/warnings.  Fatal errors (``E_*`` codes) mean
    the file should not be processed further.
    """

    def __init__(self, config: TabularParserConfig) -> None:
        self.config = config

    def scan(self, file_path: str) -> list[IngestError]:
        """Run all pre-flight checks.

        Returns:
            List of errors/warnings.  Fatal errors have codes starting
            with ``E_``.
        """
        errors: list[IngestError] = []
        file_name = os.path.basename(file_path)

        # --- 1. Extension check ---
        extensions = tuple(ext.lower() for ext in self.config.supported_extensions)
        if not file_path.lower().endswith(extensions):
            errors.append(
                IngestError(
                    code=ErrorCode.E_SECURITY_BAD_EXTENSION,
                    message=(
                        f"Unsupported file type: {file_name} "
                        f"(expected one of {', '.join(extensions)})"
                    ),
                    file_name=file_name,
                    stage="security",
                )
            )
            return errors

        # --- 2. File existence and readability ---
        if not os.path.isfile(file_path):
            errors.append(
                IngestError(
                    code=ErrorCode.E_PARSE_UNREADABLE,
                    message=f"File not found or not readable: {file_path}",
                    file_name=file_name,
                    stage="security",
                )
            )
            return errors

        # --- 3. Empty file ---
        file_size = os.path.getsize(file_path)
        if file_size == 0:
            errors.append(
                IngestError(
                    code=ErrorCode.E_PARSE_EMPTY,
                    message=f"File is empty (0 bytes): {file_name}",
                    file_name=file_name,
                    stage="security",
                )
            )
            return errors

        # --- 4. File size limit ---
        max_bytes = self.config.max_file_size_mb * 1024 * 1024
        if file_size > max_bytes:
            errors.append(
                IngestError(
                    code=ErrorCode.E_SECURITY_TOO_LARGE,
                    message=(
                        f"File size {file_size} bytes exceeds limit of "
                        f"{max_bytes} bytes ({self.config.max_file_size_mb} MB)"
                    ),
                    file_name=file_name,
                    stage="security",
                )
            )
            return errors

        # --- 5. Large file warning ---
        large_threshold = _LARGE_FILE_THRESHOLD_MB * 1024 * 1024
        if file_size > large_threshold:
            logger.warning(
                "logkit_tabular | file=%s | large file | size_mb=%.1f",
                file_name,
                file_size / (1024 * 1024),
            )
            errors.append(
                IngestError(
                    code=ErrorCode.W_LARGE_FILE,
                    message=(
                        f"File is {file_size / (1024 * 1024):.1f} MB "
                        f"(> {_LARGE_FILE_THRESHOLD_MB} MB)"
                    ),
                    file_name=file_name,
                    stage="security",
                    recoverable=True,
                )
            )

        return errors
