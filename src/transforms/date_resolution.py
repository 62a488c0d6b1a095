"""Numeric date plausibility and calendar resolution.

Archive dates are floats holding ``YYYYMMDD`` or ``YYMMDD`` integers.
Six-digit years pivot at 50: ``50``-``99`` are 19xx and ``00``-``49``
are 20xx. The plausibility ranges and the calendar conversion both live
here so they cannot disagree.
"""

from __future__ import annotations

import math
from datetime import date

from core.constants import (
    CENTURY_PIVOT,
    LONG_DATE_RANGE,
    MIN_CALENDAR_YEAR,
    SHORT_DATE_RANGE_LAST_CENTURY,
    SHORT_DATE_RANGE_THIS_CENTURY,
)

_PLAUSIBLE_RANGES = (
    LONG_DATE_RANGE,
    SHORT_DATE_RANGE_LAST_CENTURY,
    SHORT_DATE_RANGE_THIS_CENTURY,
)


def truncate_date_value(value: float) -> int | None:
    """Truncate a raw date field toward zero, or None when non-finite."""
    if not math.isfinite(value):
        return None
    return math.trunc(value)


def is_plausible_date_int(value: int) -> bool:
    """Return whether an integer falls inside a known date encoding range."""
    return any(low <= value <= high for low, high in _PLAUSIBLE_RANGES)


def is_plausible_date_value(value: float) -> bool:
    """Return whether a raw float date field looks like an encoded date."""
    truncated = truncate_date_value(value)
    return truncated is not None and is_plausible_date_int(truncated)


def expand_two_digit_year(two_digit_year: int) -> int:
    """Expand ``YY`` to a four-digit year using the century pivot."""
    if two_digit_year >= CENTURY_PIVOT:
        return 1900 + two_digit_year
    return 2000 + two_digit_year


def resolve_calendar_date(value: float, current_year: int | None = None) -> date | None:
    """Resolve a raw date field into a calendar date.

    Args:
        value: Raw numeric date field.
        current_year: Reference year for the upper bound; defaults to today.

    Returns:
        The calendar date, or None if the value is implausible, names an
        impossible day, or falls outside ``[1900, current_year + 1]``.
    """
    truncated = truncate_date_value(value)
    if truncated is None or not is_plausible_date_int(truncated):
        return None
    month = (truncated // 100) % 100
    day = truncated % 100
    if truncated >= LONG_DATE_RANGE[0]:
        year = truncated // 10000
    else:
        year = expand_two_digit_year(truncated // 10000)
    upper_year = (current_year or date.today().year) + 1
    if year < MIN_CALENDAR_YEAR or year > upper_year:
        return None
    try:
        return date(year, month, day)
    except ValueError:
        return None
