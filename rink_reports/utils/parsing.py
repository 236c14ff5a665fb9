"""
Generic, format-agnostic parsing utilities.

Scorekeeper payloads arrive as JSON with numbers and clocks encoded as either
strings or ints depending on which client version recorded them.
"""

from __future__ import annotations

import re

_CLOCK_RE = re.compile(r"^(\d{1,2}):([0-5]\d)$")

OVERTIME_MARKERS = {"OT", "OT1", "OVERTIME"}


def parse_int(value: str | int | float | None) -> int | None:
    """Parse a value to an integer, handling common edge cases.

    Accepts strings, ints, floats, or None. Returns None for empty strings or "-".
    """
    if value in (None, "", "-"):
        return None
    if isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (ValueError, TypeError):
        return None


def parse_whole_number(value: str | int | float | None) -> int | None:
    """Parse an integral value such as ``2``, ``"2"`` or ``2.0``.

    Returns None for fractions ("2.5"), booleans and anything non-numeric.
    """
    if value in (None, "", "-") or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (ValueError, TypeError):
        return None
    if not number.is_integer():
        return None
    return int(number)


def parse_clock(value: str | None) -> int | None:
    """Parse an ``MM:SS`` clock string into seconds.

    Returns None when the value is missing or not strictly MM:SS.
    """
    if value is None:
        return None
    match = _CLOCK_RE.match(str(value).strip())
    if not match:
        return None
    return int(match.group(1)) * 60 + int(match.group(2))


def parse_period(value: str | int | None, regulation_periods: int = 3) -> int | None:
    """Parse a period value, mapping the overtime marker to the period after regulation.

    ``"OT"`` and ``regulation_periods + 1`` both mean overtime. Anything else
    outside 1..regulation_periods is rejected.
    """
    if value is None:
        return None
    if isinstance(value, str) and value.strip().upper() in OVERTIME_MARKERS:
        return regulation_periods + 1
    number = parse_int(value)
    if number is None or number < 1 or number > regulation_periods + 1:
        return None
    return number
