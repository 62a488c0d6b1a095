"""Shared typed models.

This module defines immutable data models used by the index reader,
record decoder, validator, CSV emitter and conversion runner.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Literal

from core.constants import MISSING_PREVIEW_LIMIT

FormatHint = Literal["daily", "intraday"]
SymbolStatus = Literal["converted", "empty", "failed", "cancelled"]


@dataclass(frozen=True)
class DirectoryEntry:
    """One symbol listed by a directory-index file.

    Attributes:
        file_number: Numeric key of the ``F<n>`` data file.
        symbol: Ticker symbol.
        name: Free-text security description.
        format_hint: Layout claimed by the index; advisory only.
        field_count: Fields per data record when the index stores it.
    """

    file_number: int
    symbol: str
    name: str
    format_hint: FormatHint
    field_count: int | None = None


@dataclass(frozen=True)
class LocatedDataFile:
    """Numbered data file found on disk.

    Attributes:
        file_number: Numeric key parsed from the file name.
        path: Absolute file path.
        is_wide_format: True for ``.MWD`` files.
    """

    file_number: int
    path: Path
    is_wide_format: bool


@dataclass(frozen=True)
class PriceRecord:
    """Decoded on-disk price record before validation.

    Attributes:
        record_index: Zero-based record position inside the data file.
        date_value: Raw numeric date field.
        open: Opening price.
        high: High price.
        low: Low price.
        close: Closing price.
        volume: Traded volume.
        open_interest: Open interest for 7-field records.
    """

    record_index: int
    date_value: float
    open: float
    high: float
    low: float
    close: float
    volume: float
    open_interest: float | None = None


@dataclass(frozen=True)
class ValidatedRow:
    """Price row that passed every validation check."""

    calendar_date: date
    open: float
    high: float
    low: float
    close: float
    volume: float
    open_interest: float | None = None


@dataclass(frozen=True)
class Anomaly:
    """Price record that failed validation.

    Attributes:
        record: Raw decoded record.
        reason: First failing check, see ``core.constants.REASON_*``.
        calendar_date: Resolved date, or None when the date is unresolvable.
    """

    record: PriceRecord
    reason: str
    calendar_date: date | None = None


@dataclass(frozen=True)
class ConversionOptions:
    """Conversion switches passed by value through one run.

    Attributes:
        omit_anomalies: Skip writing ``<symbol>_anomalies.csv`` files.
        interpolate: Run the date-ordering post-process stage.
        detailed_log: Report every anomaly and a first-row preview.
        include_open_interest: Decode 28-byte records with open interest.
    """

    omit_anomalies: bool = True
    interpolate: bool = False
    detailed_log: bool = False
    include_open_interest: bool = False


@dataclass(frozen=True)
class SymbolResult:
    """Outcome of converting one data file."""

    symbol: str
    file_number: int
    status: SymbolStatus
    row_count: int = 0
    anomaly_count: int = 0
    csv_path: Path | None = None
    anomalies_path: Path | None = None
    error: str | None = None
    is_orphan: bool = False


@dataclass(frozen=True)
class ConversionSummary:
    """Aggregate counters for one folder conversion.

    Attributes:
        index_path: Directory-index file that drove the run.
        total_symbols: Index entries considered.
        files_found: Index entries whose data file exists.
        total_rows: Valid rows written across all CSV files.
        total_anomalies: Anomalous records across all files.
        missing: ``"SYMBOL (F<n>)"`` labels for absent data files.
        failed: Symbols whose processing raised.
        orphan_count: Data files processed without an index entry.
        results: Per-file outcomes in processing order.
        cancelled: True when the run stopped on a cancellation request.
    """

    index_path: Path
    total_symbols: int
    files_found: int
    total_rows: int
    total_anomalies: int
    missing: tuple[str, ...] = ()
    failed: tuple[str, ...] = ()
    orphan_count: int = 0
    results: tuple[SymbolResult, ...] = field(default_factory=tuple)
    cancelled: bool = False

    @property
    def written_files(self) -> tuple[Path, ...]:
        """Every CSV path written during the run."""
        paths: list[Path] = []
        for result in self.results:
            if result.csv_path is not None:
                paths.append(result.csv_path)
            if result.anomalies_path is not None:
                paths.append(result.anomalies_path)
        return tuple(paths)

    def missing_preview(
        self, limit: int = MISSING_PREVIEW_LIMIT
    ) -> tuple[tuple[str, ...], int]:
        """Return the first ``limit`` missing labels and the overflow count."""
        shown = self.missing[:limit]
        return shown, len(self.missing) - len(shown)
