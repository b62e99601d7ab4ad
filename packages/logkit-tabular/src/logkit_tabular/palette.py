"""Round-robin color allocation from a fixed palette.

The cursor is an explicit value: callers pass the current cursor in and get
the advanced cursor back, so no palette state is hidden in module globals.
"""

from __future__ import annotations

from logkit_tabular.config import DEFAULT_PALETTE


def assign_colors(
    variable_names: list[str],
    cursor: int = 0,
    palette: list[str] | None = None,
) -> tuple[dict[str, str], int]:
    """Draw one palette entry per variable starting at *cursor*.

    Returns:
        The ``{variable_name: color}`` mapping and the advanced cursor.
    """
    colors_available = palette or DEFAULT_PALETTE
    colors: dict[str, str] = {}
    for name in variable_names:
        colors[name] = colors_available[cursor % len(colors_available)]
        cursor += 1
    return colors, cursor
