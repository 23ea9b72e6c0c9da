"""CSV output for processed pages."""

from __future__ import annotations

import csv
import logging
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

from ..models.page import Page

logger = logging.getLogger(__name__)


def write_csv(
    path: str | Path,
    header: Iterable[Sequence[Any]],
    rows: Iterable[Sequence[Any]],
) -> int:
    """Write header rows followed by data rows to ``path``.

    Args:
        path: Output file (overwritten)
        header: Header rows, written first (usually a single row)
        rows: Data rows

    Returns:
        Number of data rows written
    """
    count = 0
    with Path(path).open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerows(header)
        for row in rows:
            writer.writerow(row)
            count += 1
    logger.info("csv_written", extra={"path": str(path), "rows": count})
    return count


def write_pages_csv(
    path: str | Path,
    pages: Iterable[Page],
    header: Sequence[Any] | None = None,
) -> int:
    """Write the rows of ``pages`` to ``path``, ordered by page number.

    Rows are converted with ``unpack()``; rows without it are written as-is.
    """
    ordered = sorted(pages, key=lambda p: p.number)
    rows = (
        row.unpack() if hasattr(row, "unpack") else row
        for page in ordered
        for row in page.rows
    )
    return write_csv(path, [header] if header else [], rows)
