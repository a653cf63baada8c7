"""
Time Utilities Module

Conversions between "HH:MM" wall-clock strings and minutes since midnight,
duration formatting and overnight wrap handling.

Malformed input is rejected with InvalidTimeFormat, never clamped.
"""

import re
from typing import Tuple

from .errors import InvalidTimeFormat

MINUTES_PER_DAY = 24 * 60

TIME_PATTERN = re.compile(r'^(\d{1,2}):(\d{2})$')


def parse_time(time_str: str) -> int:
    """
    Parse a 24h "HH:MM" (or "H:MM") string to minutes since midnight.

    Args:
        time_str: Clock string such as "07:49" or "7:49"

    Returns:
        Minutes since midnight (0-1439)

    Raises:
        InvalidTimeFormat: If the string does not match HH:MM or the hour or
            minute is out of range
    """
    if not isinstance(time_str, str):
        raise InvalidTimeFormat(time_str)

    match = TIME_PATTERN.match(time_str)
    if not match:
        raise InvalidTimeFormat(time_str)

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise InvalidTimeFormat(time_str)

    return hours * 60 + minutes


def format_minutes(total_minutes: int) -> str:
    """
    Format a minute count as "HH:MM".

    Negative values get a leading "-" with absolute components, which is
    how flex-bank balances are displayed. Values of 24h or more are not
    wrapped ("25:30").
    """
    sign = "-" if total_minutes < 0 else ""
    hours, minutes = divmod(abs(int(total_minutes)), 60)
    return f"{sign}{hours:02d}:{minutes:02d}"


def format_signed_minutes(total_minutes: int) -> str:
    """Format with an explicit "+" for positive values ("00:00" for zero)."""
    if total_minutes > 0:
        return "+" + format_minutes(total_minutes)
    return format_minutes(total_minutes)


def format_time_of_day(total_minutes: int) -> str:
    """Format resolved minutes as a wall-clock time, wrapping past midnight."""
    return format_minutes(total_minutes % MINUTES_PER_DAY)


def resolve_overnight(start_minutes: int, end_minutes: int) -> int:
    """Return end + 1440 when end is before start, else end unchanged."""
    if end_minutes < start_minutes:
        return end_minutes + MINUTES_PER_DAY
    return end_minutes


def resolve_interval(start: str, end: str) -> Tuple[int, int]:
    """Parse both bounds and apply the overnight correction once."""
    start_minutes = parse_time(start)
    end_minutes = resolve_overnight(start_minutes, parse_time(end))
    return start_minutes, end_minutes


def minutes_to_hours(total_minutes: float) -> float:
    return total_minutes / 60
