"""Unit tests for price record validation."""

from __future__ import annotations

import math
from dataclasses import replace
from datetime import date

import pytest

from core.types import Anomaly, PriceRecord, ValidatedRow
from transforms.record_validation import partition_records, validate_record

_GOOD = PriceRecord(
    record_index=0,
    date_value=990104.0,
    open=10.0,
    high=11.0,
    low=9.5,
    close=10.5,
    volume=1000.0,
)


def test_validate_record_accepts_good_record() -> None:
    """A clean record should become a validated row."""
    outcome = validate_record(_GOOD, current_year=2026)

    assert outcome == ValidatedRow(
        calendar_date=date(1999, 1, 4),
        open=10.0,
        high=11.0,
        low=9.5,
        close=10.5,
        volume=1000.0,
    )


@pytest.mark.parametrize(
    ("changes", "reason"),
    [
        ({"close": math.nan}, "Non-finite numeric"),
        ({"date_value": math.inf}, "Non-finite numeric"),
        ({"open_interest": math.inf}, "Non-finite numeric"),
        ({"low": 0.0}, "Non-positive price"),
        ({"open": -1.0}, "Non-positive price"),
        ({"high": 9.0}, "High below Low"),
        ({"volume": 0.0}, "Non-positive volume"),
        ({"date_value": 12.0}, "Invalid date"),
        ({"date_value": 990231.0}, "Invalid date"),
    ],
)
def test_validate_record_reports_first_failing_check(
    changes: dict[str, float], reason: str
) -> None:
    """Each broken field should map onto its anomaly reason."""
    outcome = validate_record(replace(_GOOD, **changes), current_year=2026)

    assert isinstance(outcome, Anomaly) and outcome.reason == reason


def test_validate_record_checks_run_in_order() -> None:
    """Price failures should win over volume and date failures."""
    record = replace(_GOOD, open=0.0, volume=0.0, date_value=12.0)

    outcome = validate_record(record, current_year=2026)

    assert isinstance(outcome, Anomaly) and outcome.reason == "Non-positive price"


def test_anomaly_keeps_resolvable_date_only() -> None:
    """Anomalies should carry a date when it resolves and None otherwise."""
    price_anomaly = validate_record(replace(_GOOD, volume=-5.0), current_year=2026)
    date_anomaly = validate_record(replace(_GOOD, date_value=12.0), current_year=2026)

    assert isinstance(price_anomaly, Anomaly)
    assert price_anomaly.calendar_date == date(1999, 1, 4)
    assert isinstance(date_anomaly, Anomaly) and date_anomaly.calendar_date is None


def test_partition_records_preserves_order() -> None:
    """Valid rows and anomalies should keep their input order."""
    records = [
        _GOOD,
        replace(_GOOD, record_index=1, high=1.0),
        replace(_GOOD, record_index=2, date_value=990105.0),
    ]

    rows, anomalies = partition_records(records, current_year=2026)

    assert [row.calendar_date for row in rows] == [date(1999, 1, 4), date(1999, 1, 5)]
    assert [anomaly.record.record_index for anomaly in anomalies] == [1]
    assert all(row.high >= row.low and row.volume > 0 for row in rows)
