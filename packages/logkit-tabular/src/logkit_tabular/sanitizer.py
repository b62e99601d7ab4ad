"""Cell value sanitization.

Spreadsheet exports frequently wrap numbers as ``="70.8"`` to stop the
consuming application from reformatting them.  :func:`sanitize` undoes that
and degrades anything non-numeric to ``None``.
"""

from __future__ import annotations

import math
import re

_MISSING_LITERALS = frozenset({"", "null", "undefined"})

# Leading locale-invariant decimal: sign, digits, optional fraction, exponent.
# Trailing text such as units ("12 kWh", "23.5°C") is ignored.
_DECIMAL_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def sanitize(raw: str | None) -> float | None:
    """Normalize a raw cell into a float, or ``None`` when missing/unparsable.

    The longest leading decimal number is read; a cell that does not start
    with one, or whose number overflows to infinity, yields ``None``.
    Never raises.
    """
    if raw is None:
        return None
    cleaned = raw[1:] if raw.startswith("=") else raw
    cleaned = cleaned.replace('"', "").strip()
    if cleaned in _MISSING_LITERALS:
        return None
    match = _DECIMAL_RE.match(cleaned)
    if match is None:
        return None
    value = float(match.group())
    if not math.isfinite(value):
        return None
    return value


def is_numeric(raw: str | None) -> bool:
    """Return True if *raw* sanitizes to a number."""
    return sanitize(raw) is not None
