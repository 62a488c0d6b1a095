"""Price record validation.

This module classifies decoded records as valid rows or anomalies.
Checks run in a fixed order and the first failure names the reason.
"""

from __future__ import annotations

import math
from typing import Iterable

from core.constants import (
    REASON_HIGH_BELOW_LOW,
    REASON_INVALID_DATE,
    REASON_NON_FINITE,
    REASON_NON_POSITIVE_PRICE,
    REASON_NON_POSITIVE_VOLUME,
)
from core.types import Anomaly, PriceRecord, ValidatedRow
from transforms.date_resolution import resolve_calendar_date


def validate_record(
    record: PriceRecord,
    current_year: int | None = None,
) -> ValidatedRow | Anomaly:
    """Classify one decoded record.

    Checks, first failure wins: every numeric field finite, prices
    positive, high not below low, volume positive, date resolvable.

    Args:
        record: Decoded price record.
        current_year: Reference year for the date upper bound.

    Returns:
        A validated row, or an anomaly carrying the failing reason.
    """
    calendar_date = resolve_calendar_date(record.date_value, current_year)
    if not all(math.isfinite(value) for value in _numeric_fields(record)):
        return Anomaly(record=record, reason=REASON_NON_FINITE, calendar_date=calendar_date)
    if min(record.open, record.high, record.low, record.close) <= 0:
        return Anomaly(
            record=record, reason=REASON_NON_POSITIVE_PRICE, calendar_date=calendar_date
        )
    if record.high < record.low:
        return Anomaly(record=record, reason=REASON_HIGH_BELOW_LOW, calendar_date=calendar_date)
    if record.volume <= 0:
        return Anomaly(
            record=record, reason=REASON_NON_POSITIVE_VOLUME, calendar_date=calendar_date
        )
    if calendar_date is None:
        return Anomaly(record=record, reason=REASON_INVALID_DATE)
    return ValidatedRow(
        calendar_date=calendar_date,
        open=record.open,
        high=record.high,
        low=record.low,
        close=record.close,
        volume=record.volume,
        open_interest=record.open_interest,
    )


def partition_records(
    records: Iterable[PriceRecord],
    current_year: int | None = None,
) -> tuple[list[ValidatedRow], list[Anomaly]]:
    """Split records into valid rows and anomalies, preserving order."""
    rows: list[ValidatedRow] = []
    anomalies: list[Anomaly] = []
    for record in records:
        outcome = validate_record(record, current_year)
        if isinstance(outcome, Anomaly):
            anomalies.append(outcome)
        else:
            rows.append(outcome)
    return rows, anomalies


def _numeric_fields(record: PriceRecord) -> tuple[float, ...]:
    values = (
        record.date_value,
        record.open,
        record.high,
        record.low,
        record.close,
        record.volume,
    )
    if record.open_interest is None:
        return values
    return values + (record.open_interest,)
