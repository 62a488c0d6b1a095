"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterator

import pytest
import structlog

from core.logging_config import configure_logging
from tests.archive_builders import build_index, master_record, price_record, write_archive


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture(autouse=True)
def _isolated_logging() -> Iterator[None]:
    """Give each test a fresh structlog configuration."""
    configure_logging()
    yield
    structlog.reset_defaults()


@pytest.fixture
def sample_archive(tmp_path: Path) -> Path:
    """MASTER archive with two listed symbols, one missing file and one orphan."""
    index_bytes = build_index(
        [
            master_record(1, "ACME", "Acme Corp"),
            master_record(2, "BETA", "Beta Industries"),
            master_record(12, "ABC", "Missing Data Inc"),
        ],
        record_size=53,
    )
    data_files = {
        "F1.DAT": price_record(990104, 10.5, 11.0, 10.0, 10.75, 1500)
        + price_record(990105, 10.75, 11.25, 10.5, 11.0, 2500),
        "F2.dat": price_record(250616, 20.0, 21.0, 19.5, 20.5, 800)
        + price_record(20240116, 0.0, 21.0, 19.5, 20.5, 800),
        "F99.DAT": price_record(600615, 5.0, 5.5, 4.5, 5.25, 100),
    }
    return write_archive(tmp_path / "archive", "MASTER", index_bytes, data_files)
