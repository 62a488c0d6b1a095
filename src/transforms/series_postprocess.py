"""Optional post-processing over validated price rows.

With interpolation enabled, rows are stably sorted by date and passed
through unchanged. Gap filling plugs in here; no row is invented or
dropped by this stage.
"""

from __future__ import annotations

from typing import Iterable

from core.types import ValidatedRow


def postprocess_series(rows: Iterable[ValidatedRow], interpolate: bool) -> list[ValidatedRow]:
    """Apply the optional series stage.

    Args:
        rows: Validated rows in file order.
        interpolate: Whether the stage is enabled.

    Returns:
        File-order rows when disabled, date-ordered rows when enabled.
    """
    if not interpolate:
        return list(rows)
    # TODO: carry-forward fill for missing trading days once a session calendar is available.
    return sorted(rows, key=lambda row: row.calendar_date)
