"""Shared error codes and base error model for the logkit framework.

``CoreErrorCode`` contains the error/warning codes common to all logkit
packages.  ``BaseIngestError`` is a Pydantic model that each package extends
with its own location field (e.g. ``file_name`` for tabular ingestion).
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class CoreErrorCode(str, Enum):
    """Error codes shared across all logkit packages.

    Each package maintains its own *complete* ``ErrorCode`` enum that includes
    both the shared codes here and package-specific codes.  Values equal their
    names so they are stable strings suitable for metrics and alerting.
    """

    # Parse errors
    E_PARSE_CORRUPT = "E_PARSE_CORRUPT"
    E_PARSE_EMPTY = "E_PARSE_EMPTY"
    E_PARSE_UNREADABLE = "E_PARSE_UNREADABLE"

    # Security / pre-flight errors
    E_SECURITY_BAD_EXTENSION = "E_SECURITY_BAD_EXTENSION"
    E_SECURITY_TOO_LARGE = "E_SECURITY_TOO_LARGE"

    # Warnings (non-fatal)
    W_LARGE_FILE = "W_LARGE_FILE"


class BaseIngestError(BaseModel):
    """Base structured error with code, message, and context.

    Each package extends this model with a location field specific to its
    input type.  The ``code`` field is typed as ``str`` so it accepts any
    package-specific ``ErrorCode`` enum member.
    """

    code: str
    message: str
    stage: str | None = None
    recoverable: bool = False
