"""Unit tests for price record decoding."""

from __future__ import annotations

import io
import math
from pathlib import Path

import pytest

from core.errors import MetaconvDecodeError
from ingest.byte_codec import encode_ieee, encode_legacy
from ingest.price_record_decoder import (
    DATE_DECODERS,
    VALUE_DECODERS,
    decode_field,
    iter_price_records,
    read_price_records,
    record_size,
)
from tests.archive_builders import price_record


def test_iter_price_records_decodes_legacy_fields() -> None:
    """Legacy-encoded records should decode in field order."""
    payload = price_record(990104, 10.5, 11.0, 10.0, 10.75, 1500)

    records = list(iter_price_records(io.BytesIO(payload)))

    assert len(records) == 1
    record = records[0]
    assert (record.date_value, record.open, record.high, record.low, record.close) == (
        990104.0,
        10.5,
        11.0,
        10.0,
        10.75,
    )
    assert record.volume == 1500.0 and record.open_interest is None


def test_iter_price_records_falls_back_to_ieee_dates() -> None:
    """An implausible legacy date should be re-read as IEEE-754."""
    payload = encode_ieee(990104) + price_record(0, 1.0, 1.0, 1.0, 1.0, 1.0)[4:]

    record = next(iter_price_records(io.BytesIO(payload)))

    assert record.date_value == 990104.0


def test_date_chain_keeps_legacy_value_when_nothing_is_plausible() -> None:
    """With no plausible reading the legacy decoding should be returned."""
    field = encode_legacy(12.0)

    assert decode_field(field, DATE_DECODERS) == 12.0


def test_value_chain_falls_back_to_ieee_for_non_finite_legacy() -> None:
    """A non-finite legacy decoding should fall back to the IEEE reading."""
    field = bytes.fromhex("00000001")

    value = decode_field(field, VALUE_DECODERS)

    assert math.isfinite(value)


def test_iter_price_records_reads_open_interest_layout() -> None:
    """The 28-byte layout should carry open interest as the seventh field."""
    payload = price_record(250616, 2.0, 3.0, 1.0, 2.5, 10.0, open_interest=42.0)

    records = list(iter_price_records(io.BytesIO(payload), include_open_interest=True))

    assert record_size(True) == 28 and record_size(False) == 24
    assert records[0].open_interest == 42.0


def test_iter_price_records_stops_before_partial_record() -> None:
    """Trailing bytes shorter than a record should be ignored."""
    payload = price_record(990104, 1.0, 1.0, 1.0, 1.0, 1.0) * 2 + b"\x01\x02\x03"

    records = list(iter_price_records(io.BytesIO(payload)))

    assert [record.record_index for record in records] == [0, 1]


def test_iter_price_records_empty_file_yields_nothing() -> None:
    """A file with no full record should yield an empty sequence."""
    assert list(iter_price_records(io.BytesIO(b"\x00" * 23))) == []


def test_read_price_records_wraps_missing_files(tmp_path: Path) -> None:
    """Unreadable data files should raise a typed decode error."""
    with pytest.raises(MetaconvDecodeError):
        read_price_records(tmp_path / "F404.DAT")
