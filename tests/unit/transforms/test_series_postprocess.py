"""Unit tests for the optional series stage."""

from __future__ import annotations

from datetime import date

from core.types import ValidatedRow
from transforms.series_postprocess import postprocess_series


def _row(day: int, close: float) -> ValidatedRow:
    return ValidatedRow(
        calendar_date=date(2020, 1, day),
        open=close,
        high=close,
        low=close,
        close=close,
        volume=1.0,
    )


def test_postprocess_series_disabled_keeps_file_order() -> None:
    """Without interpolation rows should pass through untouched."""
    rows = [_row(3, 1.0), _row(1, 2.0)]

    assert postprocess_series(rows, interpolate=False) == rows


def test_postprocess_series_enabled_sorts_stably_by_date() -> None:
    """With interpolation rows should be date-ordered and none dropped."""
    rows = [_row(3, 1.0), _row(1, 2.0), _row(3, 3.0), _row(2, 4.0)]

    result = postprocess_series(rows, interpolate=True)

    assert [row.close for row in result] == [2.0, 4.0, 1.0, 3.0]
