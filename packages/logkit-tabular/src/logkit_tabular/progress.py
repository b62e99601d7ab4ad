"""Monotonic progress reporting.

Wraps an optional caller callback so that reported percentages never go
backwards, never exceed 100, and 100 is emitted at most once.
"""

from __future__ import annotations

from logkit_core.protocols import ProgressCallback


class ProgressReporter:
    """Forward clamped, non-decreasing percentages to *callback*."""

    def __init__(self, callback: ProgressCallback | None = None) -> None:
        self._callback = callback
        self._last = 0.0
        self._completed = False

    @property
    def last(self) -> float:
        return self._last

    def report(self, percent: float) -> None:
        if self._completed:
            return
        percent = min(max(percent, self._last), 100.0)
        if percent >= 100.0:
            self._completed = True
        self._last = percent
        if self._callback is not None:
            self._callback(percent)


def scaled(
    callback: ProgressCallback | None, start: float, end: float
) -> ProgressCallback | None:
    """Map a child's 0-100 progress into ``[start, end]`` of *callback*."""
    if callback is None:
        return None

    def _report(percent: float) -> None:
        callback(start + (end - start) * percent / 100.0)

    return _report
