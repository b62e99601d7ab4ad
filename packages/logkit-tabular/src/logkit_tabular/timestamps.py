"""Timestamp parsing for log rows.

Two textual shapes are accepted, tried in order:

1. ISO-like ``YYYY-MM-DD HH:MM:SS`` (anything :meth:`datetime.fromisoformat`
   understands, at least 19 characters long and containing ``-``).
2. Day-first ``DD/MM/YYYY HH.MM[.SS]`` or ``DD-MM-YYYY HH:MM[:SS]``.

Instants are naive :class:`~datetime.datetime` objects in local wall-clock
time.  Timezone-aware ISO values are converted to local time first.
"""

from __future__ import annotations

import re
from datetime import datetime

_ISO_MIN_LENGTH = 19

_WHITESPACE_RE = re.compile(r"\s+")
_DATE_SPLIT_RE = re.compile(r"[/\-]")
_TIME_SPLIT_RE = re.compile(r"[.:]")


def _strip_quotes(raw: str) -> str:
    text = raw.strip()
    if text.startswith('"'):
        text = text[1:]
    if text.endswith('"'):
        text = text[:-1]
    return text.strip()


def _parse_iso(text: str) -> datetime | None:
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def _to_ints(fields: list[str]) -> list[int] | None:
    try:
        return [int(f) for f in fields]
    except ValueError:
        return None


def _parse_day_first(text: str) -> datetime | None:
    tokens = _WHITESPACE_RE.split(text)
    if len(tokens) != 2:
        return None
    date_token, time_token = tokens

    date_fields = _to_ints(_DATE_SPLIT_RE.split(date_token))
    if date_fields is None or len(date_fields) != 3:
        return None

    time_fields = _to_ints(_TIME_SPLIT_RE.split(time_token))
    if time_fields is None or not 2 <= len(time_fields) <= 3:
        return None

    day, month, year = date_fields
    hour, minute = time_fields[0], time_fields[1]
    second = time_fields[2] if len(time_fields) == 3 else 0
    try:
        return datetime(year, month, day, hour, minute, second)
    except ValueError:
        return None


def parse_timestamp(raw: str | None) -> datetime | None:
    """Parse a raw timestamp cell into a local instant, or ``None``."""
    if raw is None:
        return None
    text = _strip_quotes(raw)
    if not text:
        return None

    if "-" in text and len(text) >= _ISO_MIN_LENGTH:
        parsed = _parse_iso(text)
        if parsed is not None:
            return parsed

    return _parse_day_first(text)
