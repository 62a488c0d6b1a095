"""Directory-index readers for the MASTER, EMASTER and XMASTER variants.

Each variant is a fixed-record file whose first record is a header.
The variant is picked once from the file name; every variant then runs
through the same table-driven record parser.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from core.constants import (
    DAILY_TIME_FRAMES,
    EMASTER_RECORD_SIZE,
    EMASTER_VERSION_MARKER,
    INDEX_FILE_NAMES,
    INTRADAY_TIME_FRAME,
    KNOWN_FIELD_COUNTS,
    MASTER_RECORD_SIZE,
    SYMBOL_PATTERN,
    XMASTER_RECORD_SIZE,
    XMASTER_TYPE_MARKER,
)
from core.errors import (
    MetaconvIndexError,
    MetaconvIndexNotFoundError,
    MetaconvUnknownIndexFormatError,
)
from core.logging_config import get_logger
from core.types import DirectoryEntry, FormatHint

_LOGGER = get_logger(__name__)
_SYMBOL_RE = re.compile(SYMBOL_PATTERN)


@dataclass(frozen=True)
class TextField:
    """Fixed-width ASCII field inside an index record."""

    offset: int
    length: int


@dataclass(frozen=True)
class IndexLayout:
    """Byte layout of one directory-index variant.

    Attributes:
        name: Upper-case index file name.
        record_size: Size of the header and of every record.
        marker_offset: Offset of the validity marker, or None.
        marker: Bytes a valid record carries at ``marker_offset``.
        file_number_offset: Offset of the data-file number.
        file_number_width: 1 for an unsigned byte, 2 for little-endian u16.
        symbol: Symbol field position.
        name_field: Description field position.
        time_frame_offset: Offset of the period character.
        field_count_offset: Offset of the per-record field count, or None.
        default_hint: Format hint when the period character is unknown.
    """

    name: str
    record_size: int
    marker_offset: int | None
    marker: bytes
    file_number_offset: int
    file_number_width: int
    symbol: TextField
    name_field: TextField
    time_frame_offset: int
    field_count_offset: int | None
    default_hint: FormatHint


MASTER_LAYOUT = IndexLayout(
    name="MASTER",
    record_size=MASTER_RECORD_SIZE,
    marker_offset=None,
    marker=b"",
    file_number_offset=0,
    file_number_width=1,
    symbol=TextField(36, 14),
    name_field=TextField(7, 16),
    time_frame_offset=33,
    field_count_offset=4,
    default_hint="daily",
)

EMASTER_LAYOUT = IndexLayout(
    name="EMASTER",
    record_size=EMASTER_RECORD_SIZE,
    marker_offset=0,
    marker=EMASTER_VERSION_MARKER,
    file_number_offset=2,
    file_number_width=1,
    symbol=TextField(11, 14),
    name_field=TextField(32, 16),
    time_frame_offset=60,
    field_count_offset=6,
    default_hint="daily",
)

XMASTER_LAYOUT = IndexLayout(
    name="XMASTER",
    record_size=XMASTER_RECORD_SIZE,
    marker_offset=0,
    marker=bytes((XMASTER_TYPE_MARKER,)),
    file_number_offset=65,
    file_number_width=2,
    symbol=TextField(1, 14),
    name_field=TextField(16, 45),
    time_frame_offset=62,
    field_count_offset=None,
    default_hint="intraday",
)

INDEX_LAYOUTS: dict[str, IndexLayout] = {
    layout.name: layout for layout in (MASTER_LAYOUT, EMASTER_LAYOUT, XMASTER_LAYOUT)
}


def find_directory_index(folder: Path) -> Path:
    """Locate the directory-index file inside a folder.

    Args:
        folder: Archive folder to scan (non-recursive).

    Returns:
        Path of the index file. When several variants exist, MASTER wins
        over EMASTER, which wins over XMASTER.

    Raises:
        MetaconvIndexNotFoundError: If no index file is present.
    """
    if not folder.is_dir():
        raise MetaconvIndexNotFoundError(
            f"Input folder {folder} does not exist or is not a directory. "
            "Select the folder that holds the MASTER/EMASTER/XMASTER file."
        )
    candidates: dict[str, Path] = {}
    for entry in sorted(folder.iterdir()):
        upper_name = entry.name.upper()
        if upper_name in INDEX_FILE_NAMES and entry.is_file():
            candidates.setdefault(upper_name, entry)
    for index_name in INDEX_FILE_NAMES:
        if index_name in candidates:
            return candidates[index_name]
    raise MetaconvIndexNotFoundError(
        f"No MASTER/EMASTER/XMASTER file found in {folder}. "
        "Point the converter at a folder containing a directory-index file."
    )


def detect_index_layout(index_path: Path) -> IndexLayout:
    """Pick the record layout from the index file name (case-insensitive).

    Raises:
        MetaconvUnknownIndexFormatError: If the name is not a known variant.
    """
    layout = INDEX_LAYOUTS.get(index_path.name.upper())
    if layout is None:
        raise MetaconvUnknownIndexFormatError(
            f"Unknown directory-index file '{index_path.name}'. "
            f"Supported names: {', '.join(INDEX_FILE_NAMES)}."
        )
    return layout


def iter_directory_entries(index_path: Path) -> Iterator[DirectoryEntry]:
    """Yield directory entries from an index file.

    The header record is skipped. Records failing the variant marker, or
    carrying a blank symbol, are left out. A truncated trailing record
    ends the sequence.

    Args:
        index_path: MASTER, EMASTER or XMASTER file.

    Yields:
        Parsed entries in file order.

    Raises:
        MetaconvUnknownIndexFormatError: If the file name is unsupported.
        MetaconvIndexError: If the file cannot be opened.
    """
    layout = detect_index_layout(index_path)
    try:
        handle = index_path.open("rb")
    except OSError as error:
        raise MetaconvIndexError(
            f"Failed to open directory index {index_path}: {error.strerror or error}. "
            "Check that the file is readable."
        ) from error
    with handle:
        header = handle.read(layout.record_size)
        if len(header) < layout.record_size:
            return
        while True:
            record = handle.read(layout.record_size)
            if len(record) < layout.record_size:
                return
            entry = parse_index_record(record, layout)
            if entry is not None:
                yield entry


def parse_index_record(record: bytes, layout: IndexLayout) -> DirectoryEntry | None:
    """Parse one fixed-size index record.

    Args:
        record: Exactly ``layout.record_size`` bytes.
        layout: Variant layout.

    Returns:
        Parsed entry, or None when the record is not a usable entry.
    """
    if not _has_marker(record, layout):
        return None
    symbol, name = _extract_symbol_and_name(record, layout)
    if not symbol:
        return None
    entry = DirectoryEntry(
        file_number=_read_file_number(record, layout),
        symbol=symbol,
        name=name,
        format_hint=_read_format_hint(record, layout),
        field_count=_read_field_count(record, layout),
    )
    _LOGGER.debug(
        "index_entry_read",
        index=layout.name,
        file_number=entry.file_number,
        symbol=entry.symbol,
        name=entry.name,
    )
    return entry


def is_ticker_symbol(text: str) -> bool:
    """Return whether text looks like a ticker symbol."""
    return _SYMBOL_RE.match(text) is not None


def _has_marker(record: bytes, layout: IndexLayout) -> bool:
    if layout.marker_offset is None:
        return True
    start = layout.marker_offset
    return record[start : start + len(layout.marker)] == layout.marker


def _extract_symbol_and_name(record: bytes, layout: IndexLayout) -> tuple[str, str]:
    """Read symbol and name, retrying transposed positions for odd archives."""
    symbol = _read_text(record, layout.symbol.offset, layout.symbol.length)
    name = _read_text(record, layout.name_field.offset, layout.name_field.length)
    if not symbol or is_ticker_symbol(symbol):
        return symbol, name
    swapped_symbol = _read_text(record, layout.name_field.offset, layout.symbol.length)
    swapped_name = _read_text(record, layout.symbol.offset, layout.name_field.length)
    if is_ticker_symbol(swapped_symbol):
        return swapped_symbol, swapped_name
    return symbol, name


def _read_text(record: bytes, offset: int, length: int) -> str:
    """Decode a NUL-terminated, space-padded ASCII field."""
    if offset + length > len(record):
        return ""
    raw = record[offset : offset + length].split(b"\x00", 1)[0]
    return raw.decode("ascii", errors="replace").strip()


def _read_file_number(record: bytes, layout: IndexLayout) -> int:
    start = layout.file_number_offset
    return int.from_bytes(record[start : start + layout.file_number_width], "little")


def _read_format_hint(record: bytes, layout: IndexLayout) -> FormatHint:
    time_frame = record[layout.time_frame_offset]
    if time_frame == INTRADAY_TIME_FRAME:
        return "intraday"
    if time_frame in DAILY_TIME_FRAMES:
        return "daily"
    return layout.default_hint


def _read_field_count(record: bytes, layout: IndexLayout) -> int | None:
    if layout.field_count_offset is None:
        return None
    field_count = record[layout.field_count_offset]
    if field_count in KNOWN_FIELD_COUNTS:
        return field_count
    return None
