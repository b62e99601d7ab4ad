"""Callback protocols for the logkit pipeline.

All protocols are ``@runtime_checkable`` so callers can optionally verify
conformance with ``isinstance`` checks.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ProgressCallback(Protocol):
    """Receives monotonically non-decreasing completion percentages (0-100)."""

    def __call__(self, percent: float) -> None:
        ...
