"""Four-byte floating-point field codec.

Archive fields use the legacy Microsoft Binary Format (MBF) single
precision encoding, with some writers storing plain IEEE-754 instead.
MBF is converted by remapping bits straight into an IEEE-754 pattern,
never through float arithmetic, so values round exactly like float32.

MBF byte layout, low to high::

    byte 0  mantissa bits 0-7
    byte 1  mantissa bits 8-15
    byte 2  sign (bit 7) + mantissa bits 16-22
    byte 3  exponent, bias 129 (IEEE bias + 2)
"""

from __future__ import annotations

import math
import struct

from core.constants import LEGACY_EXPONENT_BIAS_SHIFT, LEGACY_FIELD_WIDTH

_IEEE_FLOAT = struct.Struct("<f")
_IEEE_BITS = struct.Struct("<I")


def decode_legacy(field: bytes) -> float:
    """Decode one MBF field into a float.

    Args:
        field: Exactly four little-endian bytes.

    Returns:
        Decoded value. Exponent byte 0 yields ``0.0``; exponent byte 1 has
        no IEEE counterpart and yields a non-finite value.

    Raises:
        ValueError: If ``field`` is not four bytes long.
    """
    _require_field_width(field)
    exponent = field[3]
    if exponent == 0:
        return 0.0
    ieee_exponent = (exponent - LEGACY_EXPONENT_BIAS_SHIFT) & 0xFF
    bits = (
        ((field[2] & 0x80) << 24)
        | (ieee_exponent << 23)
        | ((field[2] & 0x7F) << 16)
        | (field[1] << 8)
        | field[0]
    )
    return _IEEE_FLOAT.unpack(_IEEE_BITS.pack(bits))[0]


def decode_ieee(field: bytes) -> float:
    """Decode one field as little-endian IEEE-754 single precision."""
    _require_field_width(field)
    return _IEEE_FLOAT.unpack(field)[0]


def encode_legacy(value: float) -> bytes:
    """Encode a float as an MBF field.

    Args:
        value: Value to encode; rounded to float32 first.

    Returns:
        Four MBF bytes.

    Raises:
        ValueError: If the value is non-finite, subnormal, or too large
            for the MBF exponent range.
    """
    if not math.isfinite(value):
        raise ValueError(f"Cannot encode non-finite value {value!r} as MBF.")
    try:
        bits = _IEEE_BITS.unpack(_IEEE_FLOAT.pack(value))[0]
    except OverflowError as error:
        raise ValueError(f"Value {value!r} is outside float32 range.") from error
    ieee_exponent = (bits >> 23) & 0xFF
    if ieee_exponent == 0:
        if bits & 0x7FFFFF:
            raise ValueError(f"Cannot encode subnormal value {value!r} as MBF.")
        return bytes(LEGACY_FIELD_WIDTH)
    exponent = ieee_exponent + LEGACY_EXPONENT_BIAS_SHIFT
    if exponent > 0xFF:
        raise ValueError(f"Value {value!r} exceeds the MBF exponent range.")
    sign = (bits >> 24) & 0x80
    return bytes(
        (
            bits & 0xFF,
            (bits >> 8) & 0xFF,
            sign | ((bits >> 16) & 0x7F),
            exponent,
        )
    )


def encode_ieee(value: float) -> bytes:
    """Encode a float as little-endian IEEE-754 single precision."""
    return _IEEE_FLOAT.pack(value)


def _require_field_width(field: bytes) -> None:
    if len(field) != LEGACY_FIELD_WIDTH:
        raise ValueError(
            f"Expected a {LEGACY_FIELD_WIDTH}-byte field, got {len(field)} bytes."
        )
