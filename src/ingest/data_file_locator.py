"""Numbered data-file discovery.

Archives often disagree with their own index about which extension a
data file carries, so the converter trusts what is actually on disk.
"""

from __future__ import annotations

import re
from pathlib import Path

from core.constants import DATA_FILE_PATTERN, WIDE_DATA_EXTENSION
from core.types import LocatedDataFile

_DATA_FILE_RE = re.compile(DATA_FILE_PATTERN, re.IGNORECASE)


def locate_data_files(folder: Path) -> dict[int, LocatedDataFile]:
    """Map file numbers to the ``F<n>.DAT`` / ``F<n>.MWD`` files in a folder.

    Args:
        folder: Archive folder, scanned non-recursively.

    Returns:
        Mapping keyed by file number. Files are visited in sorted name
        order and the last match wins when two files share a number.
    """
    located: dict[int, LocatedDataFile] = {}
    for entry in sorted(folder.iterdir(), key=lambda path: path.name):
        data_file = match_data_file(entry)
        if data_file is not None:
            located[data_file.file_number] = data_file
    return located


def match_data_file(path: Path) -> LocatedDataFile | None:
    """Return a located data file when ``path`` is a numbered data file."""
    match = _DATA_FILE_RE.match(path.name)
    if match is None or not path.is_file():
        return None
    return LocatedDataFile(
        file_number=int(match.group(1)),
        path=path.resolve(),
        is_wide_format=path.suffix.upper() == WIDE_DATA_EXTENSION,
    )
