"""Public SDK surface for metaconv.

This module provides a stable import path for library users.
It re-exports the conversion entry point, typed models and errors.
"""

from __future__ import annotations

from core.config import MetaconvConfig
from core.errors import (
    MetaconvConfigError,
    MetaconvDecodeError,
    MetaconvError,
    MetaconvIndexError,
    MetaconvIndexNotFoundError,
    MetaconvOutputError,
    MetaconvUnknownIndexFormatError,
)
from core.progress import (
    CallbackProgressSink,
    CancellationSignal,
    CancellationToken,
    LoggingProgressSink,
    NullProgressSink,
    ProgressSink,
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
from ingest.byte_codec import decode_ieee, decode_legacy, encode_legacy
from ingest.data_file_locator import locate_data_files
from ingest.directory_index import find_directory_index, iter_directory_entries
from ingest.pipeline import ConversionRunner, convert
from ingest.price_record_decoder import read_price_records
from transforms.record_validation import validate_record

__all__ = [
    "Anomaly",
    "CallbackProgressSink",
    "CancellationSignal",
    "CancellationToken",
    "ConversionOptions",
    "ConversionRunner",
    "ConversionSummary",
    "DirectoryEntry",
    "LocatedDataFile",
    "LoggingProgressSink",
    "MetaconvConfig",
    "MetaconvConfigError",
    "MetaconvDecodeError",
    "MetaconvError",
    "MetaconvIndexError",
    "MetaconvIndexNotFoundError",
    "MetaconvOutputError",
    "MetaconvUnknownIndexFormatError",
    "NullProgressSink",
    "PriceRecord",
    "ProgressSink",
    "SymbolResult",
    "ValidatedRow",
    "convert",
    "decode_ieee",
    "decode_legacy",
    "encode_legacy",
    "find_directory_index",
    "iter_directory_entries",
    "locate_data_files",
    "read_price_records",
    "validate_record",
]
