"""CSV rendering and persistence for converted symbols.

This module formats validated rows and anomalies as delimited text.
Each output file is written whole through a temporary sibling file
and ``os.replace``, so a file is either fully rewritten or untouched.
"""

from __future__ import annotations

import os
import tempfile
from datetime import date
from pathlib import Path
from typing import Iterable, Sequence

from core.constants import (
    ANOMALIES_FILE_SUFFIX,
    CSV_EXTENSION,
    CSV_HEADER_COLUMNS,
    INVALID_FILE_NAME_CHARS,
    OPEN_INTEREST_COLUMN,
    PRICE_DECIMALS,
    REASON_COLUMN,
    UNKNOWN_SYMBOL_STEM,
    VOLUME_DECIMALS,
)
from core.errors import MetaconvOutputError
from core.types import Anomaly, ValidatedRow


def build_header(include_open_interest: bool, with_reason: bool = False) -> str:
    """Build the CSV header line for the requested layout."""
    columns = list(CSV_HEADER_COLUMNS)
    if include_open_interest:
        columns.append(OPEN_INTEREST_COLUMN)
    if with_reason:
        columns.append(REASON_COLUMN)
    return ",".join(columns)


def format_row(row: ValidatedRow, include_open_interest: bool) -> str:
    """Format one validated row as a CSV line."""
    return ",".join(
        _format_values(
            row.calendar_date,
            (row.open, row.high, row.low, row.close),
            row.volume,
            row.open_interest,
            include_open_interest,
        )
    )


def format_anomaly(anomaly: Anomaly, include_open_interest: bool) -> str:
    """Format one anomaly as a CSV line ending with its reason."""
    record = anomaly.record
    values = _format_values(
        anomaly.calendar_date,
        (record.open, record.high, record.low, record.close),
        record.volume,
        record.open_interest,
        include_open_interest,
    )
    values.append(anomaly.reason)
    return ",".join(values)


def render_rows_csv(rows: Iterable[ValidatedRow], include_open_interest: bool) -> str:
    """Render a full price CSV document."""
    lines = [build_header(include_open_interest)]
    lines.extend(format_row(row, include_open_interest) for row in rows)
    return "\n".join(lines) + "\n"


def render_anomalies_csv(anomalies: Iterable[Anomaly], include_open_interest: bool) -> str:
    """Render a full anomaly CSV document."""
    lines = [build_header(include_open_interest, with_reason=True)]
    lines.extend(format_anomaly(anomaly, include_open_interest) for anomaly in anomalies)
    return "\n".join(lines) + "\n"


def sanitize_file_stem(symbol: str) -> str:
    """Turn a ticker into a file-name-safe stem.

    Args:
        symbol: Raw ticker symbol.

    Returns:
        Stem with unsafe characters replaced by ``_``, or ``UNKNOWN``.
    """
    cleaned = "".join(
        "_" if char in INVALID_FILE_NAME_CHARS or ord(char) < 32 else char
        for char in symbol
    )
    cleaned = cleaned.strip().rstrip(". ")
    return cleaned or UNKNOWN_SYMBOL_STEM


def symbol_csv_path(output_dir: Path, symbol: str) -> Path:
    """Return ``<output_dir>/<symbol>.csv``."""
    return output_dir / f"{sanitize_file_stem(symbol)}{CSV_EXTENSION}"


def anomalies_csv_path(output_dir: Path, symbol: str) -> Path:
    """Return ``<output_dir>/<symbol>_anomalies.csv``."""
    stem = sanitize_file_stem(symbol)
    return output_dir / f"{stem}{ANOMALIES_FILE_SUFFIX}{CSV_EXTENSION}"


def write_symbol_csv(
    output_dir: Path,
    symbol: str,
    rows: Sequence[ValidatedRow],
    include_open_interest: bool,
) -> Path:
    """Write the price CSV for one symbol.

    Returns:
        Path of the written file.

    Raises:
        MetaconvOutputError: If the file cannot be written.
    """
    target_path = symbol_csv_path(output_dir, symbol)
    write_text_atomic(target_path, render_rows_csv(rows, include_open_interest))
    return target_path


def write_anomalies_csv(
    output_dir: Path,
    symbol: str,
    anomalies: Sequence[Anomaly],
    include_open_interest: bool,
) -> Path:
    """Write the anomaly CSV for one symbol.

    Returns:
        Path of the written file.

    Raises:
        MetaconvOutputError: If the file cannot be written.
    """
    target_path = anomalies_csv_path(output_dir, symbol)
    write_text_atomic(target_path, render_anomalies_csv(anomalies, include_open_interest))
    return target_path


def write_text_atomic(target_path: Path, payload: str) -> None:
    """Replace ``target_path`` with ``payload`` in one rename.

    Raises:
        MetaconvOutputError: If the temporary file cannot be written or moved.
    """
    try:
        fd, temp_path = tempfile.mkstemp(
            dir=target_path.parent, suffix=CSV_EXTENSION, prefix=".tmp-metaconv-"
        )
    except OSError as error:
        raise MetaconvOutputError(
            f"Failed to create output file in {target_path.parent}: "
            f"{error.strerror or error}. Check folder permissions."
        ) from error
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(payload)
        os.replace(temp_path, target_path)
    except OSError as error:
        raise MetaconvOutputError(
            f"Failed to write {target_path}: {error.strerror or error}. "
            "Check free disk space and folder permissions."
        ) from error
    finally:
        if os.path.exists(temp_path):
            os.remove(temp_path)


def _format_values(
    calendar_date: date | None,
    prices: tuple[float, float, float, float],
    volume: float,
    open_interest: float | None,
    include_open_interest: bool,
) -> list[str]:
    values = [calendar_date.isoformat() if calendar_date is not None else ""]
    values.extend(f"{price:.{PRICE_DECIMALS}f}" for price in prices)
    values.append(f"{volume:.{VOLUME_DECIMALS}f}")
    if include_open_interest:
        if open_interest is None:
            values.append("")
        else:
            values.append(f"{open_interest:.{VOLUME_DECIMALS}f}")
    return values
