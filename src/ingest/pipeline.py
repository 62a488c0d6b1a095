"""Folder conversion orchestration.

This module sequences index reading, data-file matching, record
decoding, validation, post-processing and CSV emission for one run.
Failures inside one symbol are isolated; only a missing index or an
unusable output folder abort the run.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from core.constants import (
    MISSING_PREVIEW_LIMIT,
    OPEN_INTEREST_FIELD_COUNT,
    ORPHAN_SYMBOL_PREFIX,
    SPARSE_DATA_FILE_THRESHOLD,
)
from core.errors import MetaconvDecodeError, MetaconvOutputError
from core.logging_config import get_logger
from core.progress import (
    CancellationSignal,
    NeverCancelled,
    NullProgressSink,
    ProgressSink,
    report_progress,
)
from core.types import (
    Anomaly,
    ConversionOptions,
    ConversionSummary,
    DirectoryEntry,
    LocatedDataFile,
    PriceRecord,
    SymbolResult,
    ValidatedRow,
)
from ingest.data_file_locator import locate_data_files
from ingest.directory_index import find_directory_index, iter_directory_entries
from ingest.price_record_decoder import iter_price_records
from store.csv_emitter import (
    format_anomaly,
    format_row,
    write_anomalies_csv,
    write_symbol_csv,
)
from transforms.record_validation import partition_records
from transforms.series_postprocess import postprocess_series

_LOGGER = get_logger(__name__)


class _ConversionCancelled(Exception):
    """Raised inside a record stream when cancellation is requested."""


@dataclass
class _SymbolOutput:
    """Files and counts produced so far for one symbol."""

    row_count: int = 0
    anomaly_count: int = 0
    csv_path: Path | None = None
    anomalies_path: Path | None = None


class ConversionRunner:
    """Stateful runner for one folder-to-folder conversion."""

    def __init__(
        self,
        input_dir: Path,
        output_dir: Path,
        options: ConversionOptions,
        cancellation: CancellationSignal,
        progress: ProgressSink,
    ) -> None:
        self._input_dir = input_dir
        self._output_dir = output_dir
        self._options = options
        self._cancellation = cancellation
        self._progress = progress
        self._results: list[SymbolResult] = []
        self._missing: list[str] = []
        self._total_symbols = 0
        self._files_found = 0
        self._orphan_count = 0
        self._cancelled = False

    def run(self) -> ConversionSummary:
        """Execute the conversion and return aggregate counters."""
        self._report(f"Input: {self._input_dir}")
        self._report(f"Output: {self._output_dir}")
        index_path = find_directory_index(self._input_dir)
        self._report(f"Detected directory index: {index_path.name}")
        entries = list(iter_directory_entries(index_path))
        located = locate_data_files(self._input_dir)
        self._report_prescan(len(entries), len(located))
        self._prepare_output_dir()
        self._convert_index_entries(entries, located)
        self._report_missing()
        if not self._cancelled:
            self._convert_orphans(entries, located, index_path.name)
        summary = self._build_summary(index_path)
        _log_conversion_completion(summary)
        return summary

    def _report_prescan(self, entry_count: int, data_file_count: int) -> None:
        self._report(
            f"Pre-scan: {entry_count} index entries will be matched against "
            f"{data_file_count} F*.DAT/MWD files found in the folder."
        )
        if data_file_count <= SPARSE_DATA_FILE_THRESHOLD:
            self._report(
                "Only a couple of F*.DAT/MWD files are present, "
                "so only a few CSV files can be produced."
            )

    def _prepare_output_dir(self) -> None:
        try:
            self._output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            raise MetaconvOutputError(
                f"Failed to create output folder {self._output_dir}: "
                f"{error.strerror or error}. Choose a writable output location."
            ) from error

    def _convert_index_entries(
        self,
        entries: list[DirectoryEntry],
        located: dict[int, LocatedDataFile],
    ) -> None:
        for entry in entries:
            if self._cancellation_requested():
                return
            self._total_symbols += 1
            data_file = located.get(entry.file_number)
            if data_file is None:
                label = f"{entry.symbol} (F{entry.file_number})"
                self._missing.append(label)
                _LOGGER.warning(
                    "data_file_missing", symbol=entry.symbol, file_number=entry.file_number
                )
                continue
            self._files_found += 1
            include_open_interest = _uses_open_interest(self._options, entry)
            _warn_on_skipped_open_interest(self._options, entry)
            result = self._convert_symbol(
                entry.symbol, data_file, include_open_interest, is_orphan=False
            )
            self._results.append(result)
            if result.status == "cancelled":
                self._mark_cancelled()
                return

    def _convert_orphans(
        self,
        entries: list[DirectoryEntry],
        located: dict[int, LocatedDataFile],
        index_name: str,
    ) -> None:
        referenced = {entry.file_number for entry in entries}
        orphans = [located[number] for number in sorted(located) if number not in referenced]
        if not orphans:
            return
        self._report(
            f"Processing {len(orphans)} orphan data files not listed in {index_name}..."
        )
        for data_file in orphans:
            if self._cancellation_requested():
                return
            self._orphan_count += 1
            symbol = f"{ORPHAN_SYMBOL_PREFIX}{data_file.file_number}"
            result = self._convert_symbol(
                symbol, data_file, self._options.include_open_interest, is_orphan=True
            )
            self._results.append(result)
            if result.status == "cancelled":
                self._mark_cancelled()
                return

    def _convert_symbol(
        self,
        symbol: str,
        data_file: LocatedDataFile,
        include_open_interest: bool,
        is_orphan: bool,
    ) -> SymbolResult:
        """Convert one data file, containing any failure to this symbol."""
        written = _SymbolOutput()
        try:
            return self._convert_symbol_unguarded(
                symbol, data_file, include_open_interest, is_orphan, written
            )
        except Exception as error:
            _LOGGER.error(
                "symbol_failed",
                symbol=symbol,
                file_number=data_file.file_number,
                path=str(data_file.path),
                error=str(error),
            )
            self._report(f"Error processing {symbol}: {error}")
            return SymbolResult(
                symbol=symbol,
                file_number=data_file.file_number,
                status="failed",
                row_count=written.row_count,
                anomaly_count=written.anomaly_count,
                csv_path=written.csv_path,
                anomalies_path=written.anomalies_path,
                error=str(error),
                is_orphan=is_orphan,
            )

    def _convert_symbol_unguarded(
        self,
        symbol: str,
        data_file: LocatedDataFile,
        include_open_interest: bool,
        is_orphan: bool,
        written: _SymbolOutput,
    ) -> SymbolResult:
        decoded = self._decode_and_validate(symbol, data_file, include_open_interest)
        if decoded is None:
            return SymbolResult(
                symbol=symbol,
                file_number=data_file.file_number,
                status="cancelled",
                is_orphan=is_orphan,
            )
        rows, anomalies = decoded
        written.anomaly_count = len(anomalies)
        rows = postprocess_series(rows, self._options.interpolate)
        if rows:
            written.csv_path = write_symbol_csv(
                self._output_dir, symbol, rows, include_open_interest
            )
            written.row_count = len(rows)
        if anomalies and not self._options.omit_anomalies:
            written.anomalies_path = write_anomalies_csv(
                self._output_dir, symbol, anomalies, include_open_interest
            )
        if written.csv_path is None:
            self._report(f"{symbol}: no valid rows; CSV not created.")
            _LOGGER.info(
                "symbol_empty",
                symbol=symbol,
                file_number=data_file.file_number,
                anomaly_count=len(anomalies),
            )
            return SymbolResult(
                symbol=symbol,
                file_number=data_file.file_number,
                status="empty",
                anomaly_count=len(anomalies),
                anomalies_path=written.anomalies_path,
                is_orphan=is_orphan,
            )
        self._report(f"{symbol}: {len(rows)} records -> {written.csv_path.name}")
        _LOGGER.info(
            "symbol_converted",
            symbol=symbol,
            file_number=data_file.file_number,
            row_count=len(rows),
            anomaly_count=len(anomalies),
            csv_path=str(written.csv_path),
            orphan=is_orphan,
        )
        return SymbolResult(
            symbol=symbol,
            file_number=data_file.file_number,
            status="converted",
            row_count=len(rows),
            anomaly_count=len(anomalies),
            csv_path=written.csv_path,
            anomalies_path=written.anomalies_path,
            is_orphan=is_orphan,
        )

    def _decode_and_validate(
        self,
        symbol: str,
        data_file: LocatedDataFile,
        include_open_interest: bool,
    ) -> tuple[list[ValidatedRow], list[Anomaly]] | None:
        """Decode and classify every record, or None when cancelled mid-file."""
        try:
            handle = data_file.path.open("rb")
        except OSError as error:
            raise MetaconvDecodeError(
                f"Failed to open data file {data_file.path}: {error.strerror or error}. "
                "Check that the file is readable."
            ) from error
        with handle:
            records = self._poll_cancellation(iter_price_records(handle, include_open_interest))
            try:
                rows, anomalies = partition_records(records)
            except _ConversionCancelled:
                return None
        for anomaly in anomalies:
            self._log_anomaly(symbol, anomaly, include_open_interest)
        if rows and self._options.detailed_log:
            self._report(
                f"Preview {symbol} first row: {format_row(rows[0], include_open_interest)}"
            )
        return rows, anomalies

    def _poll_cancellation(self, records: Iterator[PriceRecord]) -> Iterator[PriceRecord]:
        for record in records:
            if self._cancellation.is_requested():
                raise _ConversionCancelled()
            yield record

    def _log_anomaly(self, symbol: str, anomaly: Anomaly, include_open_interest: bool) -> None:
        if not self._options.detailed_log:
            return
        record = anomaly.record
        self._report(
            f"Anomaly {symbol} row {record.record_index}: {anomaly.reason} "
            f"[{format_anomaly(anomaly, include_open_interest)}]"
        )
        _LOGGER.debug(
            "record_anomaly",
            symbol=symbol,
            record_index=record.record_index,
            reason=anomaly.reason,
            date_value=record.date_value,
        )

    def _report_missing(self) -> None:
        if self._missing:
            shown = self._missing[:MISSING_PREVIEW_LIMIT]
            overflow = len(self._missing) - len(shown)
            self._report(
                f"Missing data files for {len(self._missing)} symbols "
                f"(showing up to {len(shown)}):"
            )
            for label in shown:
                self._report(f"   - {label}")
            if overflow:
                self._report(f"   ... {overflow} more")
        self._report(
            f"Summary: symbols={self._total_symbols}, filesFound={self._files_found}, "
            f"totalRows={sum(result.row_count for result in self._results)}"
        )

    def _cancellation_requested(self) -> bool:
        if self._cancellation.is_requested():
            self._mark_cancelled()
        return self._cancelled

    def _mark_cancelled(self) -> None:
        if not self._cancelled:
            self._report("Conversion cancelled.")
            _LOGGER.warning("conversion_cancelled", output_dir=str(self._output_dir))
        self._cancelled = True

    def _build_summary(self, index_path: Path) -> ConversionSummary:
        return ConversionSummary(
            index_path=index_path,
            total_symbols=self._total_symbols,
            files_found=self._files_found,
            total_rows=sum(result.row_count for result in self._results),
            total_anomalies=sum(result.anomaly_count for result in self._results),
            missing=tuple(self._missing),
            failed=tuple(
                result.symbol for result in self._results if result.status == "failed"
            ),
            orphan_count=self._orphan_count,
            results=tuple(self._results),
            cancelled=self._cancelled,
        )

    def _report(self, message: str) -> None:
        report_progress(self._progress, message)


def convert(
    input_path: str | Path,
    output_path: str | Path,
    options: ConversionOptions | None = None,
    cancellation: CancellationSignal | None = None,
    progress: ProgressSink | None = None,
) -> ConversionSummary:
    """Convert an archive folder into per-symbol CSV files.

    Args:
        input_path: Folder holding the directory index and data files.
        output_path: Folder receiving ``<symbol>.csv`` files; created if absent.
        options: Conversion switches; defaults to ``ConversionOptions()``.
        cancellation: Polled stop signal.
        progress: Receiver of human-readable status lines.

    Returns:
        Aggregate run summary; ``cancelled`` is set when stopped early.

    Raises:
        MetaconvIndexNotFoundError: If no directory index exists.
        MetaconvUnknownIndexFormatError: If the index name is unsupported.
        MetaconvOutputError: If the output folder cannot be created.
    """
    runner = ConversionRunner(
        input_dir=Path(input_path).expanduser(),
        output_dir=Path(output_path).expanduser(),
        options=options or ConversionOptions(),
        cancellation=cancellation or NeverCancelled(),
        progress=progress or NullProgressSink(),
    )
    return runner.run()


def _uses_open_interest(options: ConversionOptions, entry: DirectoryEntry) -> bool:
    """Use 28-byte records only when requested and not ruled out by the index."""
    if not options.include_open_interest:
        return False
    return entry.field_count is None or entry.field_count >= OPEN_INTEREST_FIELD_COUNT


def _log_conversion_completion(summary: ConversionSummary) -> None:
    """Log run completion with aggregate counters."""
    _LOGGER.info(
        "conversion_completed",
        index_path=str(summary.index_path),
        total_symbols=summary.total_symbols,
        files_found=summary.files_found,
        total_rows=summary.total_rows,
        total_anomalies=summary.total_anomalies,
        missing_count=len(summary.missing),
        failed_count=len(summary.failed),
        orphan_count=summary.orphan_count,
        cancelled=summary.cancelled,
    )


def _warn_on_skipped_open_interest(options: ConversionOptions, entry: DirectoryEntry) -> None:
    """Flag entries whose index declares 28-byte records read at 24 bytes."""
    if options.include_open_interest or entry.field_count is None:
        return
    if entry.field_count >= OPEN_INTEREST_FIELD_COUNT:
        _LOGGER.warning(
            "open_interest_layout_ignored",
            symbol=entry.symbol,
            file_number=entry.file_number,
            field_count=entry.field_count,
        )
