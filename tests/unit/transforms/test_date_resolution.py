"""Unit tests for date plausibility and calendar resolution."""

from __future__ import annotations

import math
from datetime import date

import pytest

from transforms.date_resolution import (
    expand_two_digit_year,
    is_plausible_date_int,
    is_plausible_date_value,
    resolve_calendar_date,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (19000101, True),
        (20991231, True),
        (500101, True),
        (991231, True),
        (101, True),
        (491231, True),
        (100, False),
        (491232, False),
        (500100, False),
        (1050615, False),
        (21000101, False),
        (-990104, False),
    ],
)
def test_is_plausible_date_int_ranges(value: int, expected: bool) -> None:
    """Plausibility should accept exactly the 8-digit and 6-digit ranges."""
    assert is_plausible_date_int(value) is expected


def test_two_digit_year_pivot_agrees_between_plausibility_and_resolution() -> None:
    """YYMMDD values should resolve with the 50 pivot on both code paths."""
    assert is_plausible_date_value(250615.0)
    assert resolve_calendar_date(250615.0, current_year=2026) == date(2025, 6, 15)
    assert is_plausible_date_value(600615.0)
    assert resolve_calendar_date(600615.0, current_year=2026) == date(1960, 6, 15)
    assert expand_two_digit_year(49) == 2049
    assert expand_two_digit_year(50) == 1950


def test_resolve_calendar_date_truncates_fractional_values() -> None:
    """Fractional date fields should truncate toward zero before parsing."""
    assert resolve_calendar_date(990104.75, current_year=2026) == date(1999, 1, 4)


def test_resolve_calendar_date_reads_eight_digit_dates() -> None:
    """YYYYMMDD values should resolve without a pivot."""
    assert resolve_calendar_date(20240116.0, current_year=2026) == date(2024, 1, 16)


@pytest.mark.parametrize(
    "value",
    [990230.0, 991301.0, 20300101.0, 480101.0, math.nan, math.inf, 0.0],
)
def test_resolve_calendar_date_rejects_unresolvable_values(value: float) -> None:
    """Impossible days, out-of-range years and non-finite values give None."""
    assert resolve_calendar_date(value, current_year=2026) is None


def test_resolve_calendar_date_allows_next_year() -> None:
    """Dates in the year after the reference year should still resolve."""
    assert resolve_calendar_date(270105.0, current_year=2026) == date(2027, 1, 5)
    assert resolve_calendar_date(280105.0, current_year=2026) is None
