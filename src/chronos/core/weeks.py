"""Week key codec.

Converts between calendar dates and canonical ``YYYY-W##`` week keys using
ISO-8601 week numbering (weeks start Monday, week 1 holds the year's first
Thursday).

The conversion is asymmetric on purpose:

- date -> key is exact: every date maps to exactly one key.
- key -> date is a best-effort inverse returning the Monday of that week.

These functions run once per grid cell, so none of them raise on malformed
input. They return ``None`` or an empty string instead.

Example:
    >>> week_key_from_date(date(2024, 12, 30))
    '2025-W01'
    >>> date_from_week_key("2025-W01")
    datetime.date(2024, 12, 30)
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, timedelta

logger = logging.getLogger(__name__)

WEEK_SEPARATOR = "-W"
MIN_WEEK = 1
MAX_WEEK = 53
MIN_YEAR = 1
MAX_YEAR = 9999


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def iso_week_number(value: date | datetime) -> tuple[int, int]:
    """Return the ISO ``(year, week)`` pair for a date.

    The date is shifted to the Thursday of its week and 7-day buckets are
    counted from that Thursday's January 1st, so Dec 31 can land in week 1 of
    the next year and Jan 1 in week 52/53 of the previous one.
    """
    d = _as_date(value)
    thursday = d + timedelta(days=4 - d.isoweekday())
    year_start = date(thursday.year, 1, 1)
    week = math.ceil(((thursday - year_start).days + 1) / 7)
    return thursday.year, week


def format_week_key(year: int, week: int) -> str:
    """Format a year and week number as ``YYYY-W##``."""
    return f"{year}{WEEK_SEPARATOR}{week:02d}"


def week_key_from_date(value: date | datetime) -> str:
    """Get the week key for a date."""
    year, week = iso_week_number(value)
    return format_week_key(year, week)


def parse_week_key(week_key: str) -> tuple[int, int] | None:
    """Split a week key into ``(year, week)``.

    Returns:
        The parsed pair, or None when the key does not have exactly one
        ``-W`` separator, has parts that are not plain digits, a year outside
        1-9999 or a week outside 1-53.
    """
    if not isinstance(week_key, str):
        return None
    parts = week_key.strip().split(WEEK_SEPARATOR)
    if len(parts) != 2:
        return None
    if not all(part.isascii() and part.isdigit() for part in parts):
        logger.debug(f"Rejected malformed week key: {week_key!r}")
        return None
    year = int(parts[0])
    week = int(parts[1])
    if not MIN_WEEK <= week <= MAX_WEEK or not MIN_YEAR <= year <= MAX_YEAR:
        return None
    return year, week


def canonical_week_key(week_key: str) -> str | None:
    """Zero-padded form of a week key (``2024-W2`` -> ``2024-W02``), or None."""
    parsed = parse_week_key(week_key)
    if parsed is None:
        return None
    return format_week_key(*parsed)


def is_week_key(value: str) -> bool:
    """Check whether a string is a well-formed week key."""
    return parse_week_key(value) is not None


def date_from_week_key(week_key: str) -> date | None:
    """Get the Monday of the week a key designates.

    Week 53 of a year that only has 52 weeks resolves to the Monday of week 1
    of the following year.
    """
    parsed = parse_week_key(week_key)
    if parsed is None:
        return None
    year, week = parsed
    jan1 = date(year, 1, 1)
    dow = jan1.isoweekday()

    days_to_add = (week - 1) * 7
    if dow <= 4:
        days_to_add += 1 - dow
    else:
        days_to_add += 8 - dow

    try:
        return jan1 + timedelta(days=days_to_add)
    except OverflowError:
        return None


def week_date_range(week_key: str, start_on_monday: bool = True) -> tuple[date, date] | None:
    """Get the first and last day of a week.

    Args:
        week_key: Week key to expand.
        start_on_monday: When False the displayed week starts on the Sunday
            before the ISO Monday.

    Returns:
        ``(first_day, last_day)`` spanning seven days, or None if malformed
        or outside ``date.min``/``date.max``.
    """
    monday = date_from_week_key(week_key)
    if monday is None:
        return None
    try:
        first = monday if start_on_monday else monday - timedelta(days=1)
        return first, first + timedelta(days=6)
    except OverflowError:
        # Week at the edge of the supported calendar
        return None


def _short_label(d: date) -> str:
    return f"{d.strftime('%b')} {d.day}"


def date_range_label(week_key: str, start_on_monday: bool = True) -> str:
    """Human readable range such as ``"Jan 1 - Jan 7"``; empty if malformed."""
    bounds = week_date_range(week_key, start_on_monday)
    if bounds is None:
        return ""
    first, last = bounds
    return f"{_short_label(first)} - {_short_label(last)}"


def week_note_stem(week_key: str) -> str:
    """File stem used for a week's note (``2024-W05`` -> ``2024--W05``).

    Matches the names notes already have in existing vaults.
    """
    return week_key.replace("W", "-W")
