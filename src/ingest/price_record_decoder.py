"""Fixed-size price record decoding with encoding auto-detection.

Records hold date, open, high, low, close, volume and, for 7-field
files, open interest, each as a 4-byte float. Writers disagree on the
float encoding, so every field runs through an ordered chain of
decoders and takes the first result its acceptance test allows.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Callable, Iterator

from core.constants import (
    LEGACY_FIELD_WIDTH,
    PRICE_RECORD_SIZE,
    PRICE_RECORD_SIZE_WITH_OPEN_INTEREST,
)
from core.errors import MetaconvDecodeError
from core.types import PriceRecord
from ingest.byte_codec import decode_ieee, decode_legacy
from transforms.date_resolution import is_plausible_date_value


@dataclass(frozen=True)
class FieldDecoder:
    """One step of a field auto-detection chain.

    Attributes:
        name: Encoding label used in diagnostics.
        decode: Converts four raw bytes into a float.
        accepts: Returns True when the decoded value is usable.
    """

    name: str
    decode: Callable[[bytes], float]
    accepts: Callable[[float], bool]


DATE_DECODERS: tuple[FieldDecoder, ...] = (
    FieldDecoder("legacy", decode_legacy, is_plausible_date_value),
    FieldDecoder("ieee", decode_ieee, is_plausible_date_value),
)

VALUE_DECODERS: tuple[FieldDecoder, ...] = (
    FieldDecoder("legacy", decode_legacy, math.isfinite),
    FieldDecoder("ieee", decode_ieee, math.isfinite),
)


def decode_field(
    field: bytes,
    decoders: tuple[FieldDecoder, ...],
    fallback: Callable[[bytes], float] = decode_legacy,
) -> float:
    """Decode a field with the first decoder whose result is accepted.

    Args:
        field: Four raw bytes.
        decoders: Ordered auto-detection chain.
        fallback: Decoder used when no chain step accepts its value.

    Returns:
        Decoded value.
    """
    for decoder in decoders:
        value = decoder.decode(field)
        if decoder.accepts(value):
            return value
    return fallback(field)


def record_size(include_open_interest: bool) -> int:
    """Return the on-disk record size for the requested layout."""
    if include_open_interest:
        return PRICE_RECORD_SIZE_WITH_OPEN_INTEREST
    return PRICE_RECORD_SIZE


def decode_price_record(
    buffer: bytes,
    record_index: int,
    include_open_interest: bool,
) -> PriceRecord:
    """Decode one full record buffer.

    Args:
        buffer: ``record_size(include_open_interest)`` bytes.
        record_index: Zero-based record position in the file.
        include_open_interest: Whether a seventh field is present.

    Returns:
        Decoded record.
    """
    fields = [
        buffer[offset : offset + LEGACY_FIELD_WIDTH]
        for offset in range(0, len(buffer), LEGACY_FIELD_WIDTH)
    ]
    open_interest = None
    if include_open_interest:
        open_interest = decode_field(fields[6], VALUE_DECODERS)
    return PriceRecord(
        record_index=record_index,
        date_value=decode_field(fields[0], DATE_DECODERS),
        open=decode_field(fields[1], VALUE_DECODERS),
        high=decode_field(fields[2], VALUE_DECODERS),
        low=decode_field(fields[3], VALUE_DECODERS),
        close=decode_field(fields[4], VALUE_DECODERS),
        volume=decode_field(fields[5], VALUE_DECODERS),
        open_interest=open_interest,
    )


def iter_price_records(
    handle: BinaryIO,
    include_open_interest: bool = False,
) -> Iterator[PriceRecord]:
    """Yield records from a binary handle positioned at a record boundary.

    Args:
        handle: Open binary file handle.
        include_open_interest: Decode 28-byte records with open interest.

    Yields:
        Decoded records until less than one full record remains.
    """
    size = record_size(include_open_interest)
    record_index = 0
    while True:
        buffer = handle.read(size)
        if len(buffer) < size:
            return
        yield decode_price_record(buffer, record_index, include_open_interest)
        record_index += 1


def read_price_records(path: Path, include_open_interest: bool = False) -> list[PriceRecord]:
    """Decode every record of one data file.

    Args:
        path: Numbered data file.
        include_open_interest: Decode 28-byte records with open interest.

    Returns:
        Decoded records in file order.

    Raises:
        MetaconvDecodeError: If the file cannot be read.
    """
    try:
        with path.open("rb") as handle:
            return list(iter_price_records(handle, include_open_interest))
    except OSError as error:
        raise MetaconvDecodeError(
            f"Failed to read data file {path}: {error.strerror or error}. "
            "Check that the file exists and is readable."
        ) from error
