"""Core constants used across metaconv modules.

This module centralizes archive layout numbers and output conventions.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

INDEX_FILE_NAMES = ("MASTER", "EMASTER", "XMASTER")
DAILY_DATA_EXTENSION = ".DAT"
WIDE_DATA_EXTENSION = ".MWD"
DATA_FILE_PATTERN = r"^F(\d+)\.(DAT|MWD)$"
SYMBOL_PATTERN = r"^[A-Za-z0-9.\-$]{1,15}$"

MASTER_RECORD_SIZE = 53
EMASTER_RECORD_SIZE = 192
XMASTER_RECORD_SIZE = 150
EMASTER_VERSION_MARKER = b"\x36\x36"
XMASTER_TYPE_MARKER = 0x01
INTRADAY_TIME_FRAME = ord("I")
DAILY_TIME_FRAMES = frozenset(ord(code) for code in "DWMQY")
KNOWN_FIELD_COUNTS = (5, 6, 7)
OPEN_INTEREST_FIELD_COUNT = 7

LEGACY_FIELD_WIDTH = 4
PRICE_RECORD_SIZE = 24
PRICE_RECORD_SIZE_WITH_OPEN_INTEREST = 28
LEGACY_EXPONENT_BIAS_SHIFT = 2

MIN_CALENDAR_YEAR = 1900
CENTURY_PIVOT = 50
LONG_DATE_RANGE = (19000101, 20991231)
SHORT_DATE_RANGE_LAST_CENTURY = (500101, 991231)
SHORT_DATE_RANGE_THIS_CENTURY = (101, 491231)

CSV_EXTENSION = ".csv"
ANOMALIES_FILE_SUFFIX = "_anomalies"
CSV_HEADER_COLUMNS = ("Date", "Open", "High", "Low", "Close", "Volume")
OPEN_INTEREST_COLUMN = "OpenInterest"
REASON_COLUMN = "Reason"
PRICE_DECIMALS = 4
VOLUME_DECIMALS = 2
UNKNOWN_SYMBOL_STEM = "UNKNOWN"
INVALID_FILE_NAME_CHARS = '<>:"/\\|?*'
ORPHAN_SYMBOL_PREFIX = "F"

MISSING_PREVIEW_LIMIT = 20
SPARSE_DATA_FILE_THRESHOLD = 2
DEFAULT_LOG_LEVEL = "info"

REASON_NON_FINITE = "Non-finite numeric"
REASON_NON_POSITIVE_PRICE = "Non-positive price"
REASON_HIGH_BELOW_LOW = "High below Low"
REASON_NON_POSITIVE_VOLUME = "Non-positive volume"
REASON_INVALID_DATE = "Invalid date"
