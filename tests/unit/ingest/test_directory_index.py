"""Unit tests for directory-index readers."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.errors import MetaconvIndexNotFoundError, MetaconvUnknownIndexFormatError
from ingest.directory_index import (
    EMASTER_LAYOUT,
    MASTER_LAYOUT,
    XMASTER_LAYOUT,
    detect_index_layout,
    find_directory_index,
    iter_directory_entries,
)
from tests.archive_builders import (
    build_index,
    emaster_record,
    master_record,
    pad_text,
    xmaster_record,
)


def test_master_entries_are_read_after_header(tmp_path: Path) -> None:
    """MASTER reader should skip the header and map number, symbol and name."""
    index_path = tmp_path / "MASTER"
    index_path.write_bytes(
        build_index(
            [master_record(1, "ACME", "Acme Corp"), master_record(7, "BRK.B", "Berkshire B")],
            record_size=53,
        )
    )

    entries = list(iter_directory_entries(index_path))

    assert [(entry.file_number, entry.symbol, entry.name) for entry in entries] == [
        (1, "ACME", "Acme Corp"),
        (7, "BRK.B", "Berkshire B"),
    ]
    assert entries[0].format_hint == "daily" and entries[0].field_count == 6


def test_master_swaps_transposed_symbol_and_name(tmp_path: Path) -> None:
    """A non-ticker symbol slot should be retried with name and symbol swapped."""
    record = bytearray(master_record(3, "", ""))
    record[7:23] = pad_text("XYZ", 16)
    record[36:50] = pad_text("Xyz Holdings", 14)
    index_path = tmp_path / "master"
    index_path.write_bytes(build_index([bytes(record)], record_size=53))

    entries = list(iter_directory_entries(index_path))

    assert entries[0].symbol == "XYZ"
    assert entries[0].name.startswith("Xyz Holdings")


def test_blank_symbol_records_are_skipped(tmp_path: Path) -> None:
    """Records with a blank symbol should never become entries."""
    index_path = tmp_path / "MASTER"
    index_path.write_bytes(
        build_index(
            [master_record(4, "", "NAMEONLY"), master_record(5, "GOOD", "Good Co")],
            record_size=53,
        )
    )

    entries = list(iter_directory_entries(index_path))

    assert [entry.symbol for entry in entries] == ["GOOD"]


def test_truncated_trailing_record_ends_sequence(tmp_path: Path) -> None:
    """A short trailing record should end iteration without an error."""
    index_path = tmp_path / "MASTER"
    payload = build_index([master_record(1, "ACME")], record_size=53)
    index_path.write_bytes(payload + master_record(2, "LOST")[:30])

    entries = list(iter_directory_entries(index_path))

    assert [entry.symbol for entry in entries] == ["ACME"]


def test_header_only_and_empty_index_yield_nothing(tmp_path: Path) -> None:
    """Index files without records should yield an empty sequence."""
    empty_path = tmp_path / "MASTER"
    empty_path.write_bytes(b"")

    assert list(iter_directory_entries(empty_path)) == []

    empty_path.write_bytes(bytes(53))

    assert list(iter_directory_entries(empty_path)) == []


def test_emaster_checks_version_marker(tmp_path: Path) -> None:
    """EMASTER records without the version marker should be skipped."""
    index_path = tmp_path / "EMASTER"
    index_path.write_bytes(
        build_index(
            [
                emaster_record(9, "MSFT", "Microsoft", time_frame=b"I"),
                emaster_record(10, "SKIP", "Bad Marker", marker=b"\x00\x00"),
            ],
            record_size=192,
        )
    )

    entries = list(iter_directory_entries(index_path))

    assert len(entries) == 1
    assert (entries[0].file_number, entries[0].symbol) == (9, "MSFT")
    assert entries[0].format_hint == "intraday"


def test_xmaster_reads_sixteen_bit_file_numbers(tmp_path: Path) -> None:
    """XMASTER file numbers above 255 should decode from the u16 field."""
    index_path = tmp_path / "XMASTER"
    index_path.write_bytes(
        build_index(
            [
                xmaster_record(300, "QQQ", "Nasdaq 100 Trust"),
                xmaster_record(301, "NOPE", marker=0x02),
            ],
            record_size=150,
        )
    )

    entries = list(iter_directory_entries(index_path))

    assert [(entry.file_number, entry.symbol) for entry in entries] == [(300, "QQQ")]
    assert entries[0].name == "Nasdaq 100 Trust"
    assert entries[0].field_count is None


def test_iteration_is_restartable(tmp_path: Path) -> None:
    """Each call should reopen the file and yield the same entries."""
    index_path = tmp_path / "MASTER"
    index_path.write_bytes(build_index([master_record(1, "ACME")], record_size=53))

    assert list(iter_directory_entries(index_path)) == list(iter_directory_entries(index_path))


def test_detect_index_layout_is_case_insensitive(tmp_path: Path) -> None:
    """Layout detection should ignore file name case."""
    assert detect_index_layout(tmp_path / "master") is MASTER_LAYOUT
    assert detect_index_layout(tmp_path / "Emaster") is EMASTER_LAYOUT
    assert detect_index_layout(tmp_path / "XMASTER") is XMASTER_LAYOUT


def test_unknown_index_name_raises(tmp_path: Path) -> None:
    """Unsupported index names should fail with a typed error."""
    index_path = tmp_path / "INDEX.DAT"
    index_path.write_bytes(bytes(53))

    with pytest.raises(MetaconvUnknownIndexFormatError):
        list(iter_directory_entries(index_path))


def test_find_directory_index_prefers_master(tmp_path: Path) -> None:
    """MASTER should win when several index variants are present."""
    (tmp_path / "xmaster").write_bytes(b"")
    (tmp_path / "Master").write_bytes(b"")

    assert find_directory_index(tmp_path).name == "Master"


def test_find_directory_index_raises_when_absent(tmp_path: Path) -> None:
    """A folder without an index file should fail with a typed error."""
    (tmp_path / "F1.DAT").write_bytes(b"")

    with pytest.raises(MetaconvIndexNotFoundError):
        find_directory_index(tmp_path)
