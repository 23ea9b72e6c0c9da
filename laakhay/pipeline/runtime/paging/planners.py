"""Page planning logic.

This module provides the Paginator that splits a total row count into
fixed-size page descriptors, optionally restricted to a range of page numbers.
"""

from __future__ import annotations

from typing import Any

from ...core.exceptions import ConfigurationError
from ...models.page import Page, PageRange
from .definitions import DEFAULT_PAGE_SIZE, PagePlan, total_pages_for
from .telemetry import log_invalid_config, log_page_plan


class Paginator:
    """Plans the pages covering a row count.

    Planning is pure: the same inputs always give an equal plan.
    """

    def __init__(
        self,
        page_size: int = DEFAULT_PAGE_SIZE,
        *,
        index_field: str = "",
        row_type: Any = None,
        job_id: str = "unknown",
    ) -> None:
        """Initialize paginator.

        Args:
            page_size: Rows per page (0 selects the default of 10)
            index_field: Field rows are ordered by, copied onto every page
            row_type: Prototype row copied onto every page
            job_id: Job identifier used in logs

        Raises:
            ConfigurationError: If page_size is negative
        """
        if page_size < 0:
            raise ConfigurationError(f"page_size must be >= 0, got {page_size}")
        self.page_size = page_size or DEFAULT_PAGE_SIZE
        self.index_field = index_field
        self.row_type = row_type
        self._job_id = job_id

    def plan(self, max_rows: int, page_range: PageRange | None = None) -> PagePlan:
        """Plan pages for ``max_rows`` rows.

        Args:
            max_rows: Total number of rows (must be >= 1)
            page_range: Optional restriction to a range of page numbers;
                unset bounds default to the first and last page

        Returns:
            PagePlan with one Page per page number in the resolved range

        Raises:
            ConfigurationError: If max_rows < 1
        """
        if max_rows < 1:
            message = f"max_rows must be >= 1, got {max_rows}"
            log_invalid_config(job_id=self._job_id, error_message=message)
            raise ConfigurationError(message)

        total_pages = total_pages_for(max_rows, self.page_size)
        resolved = self.resolve_range(page_range, total_pages)

        pages = [
            self._build_page(number, max_rows, total_pages)
            for number in range(resolved.start, resolved.stop + 1)
        ]

        log_page_plan(
            job_id=self._job_id,
            total_pages=total_pages,
            page_size=self.page_size,
            max_rows=max_rows,
            start=resolved.start,
            stop=resolved.stop,
        )

        return PagePlan(
            max_rows=max_rows,
            page_size=self.page_size,
            total_pages=total_pages,
            page_range=resolved,
            pages=pages,
        )

    @staticmethod
    def resolve_range(page_range: PageRange | None, total_pages: int) -> PageRange:
        """Fill unset bounds of ``page_range``.

        Args:
            page_range: Requested range (None for all pages)
            total_pages: Resolved total page count

        Returns:
            New PageRange with both bounds set
        """
        start = page_range.start if page_range else 0
        stop = page_range.stop if page_range else 0
        if start < 1:
            start = 1
        # An unset stop is the last page, not max_rows. Defaulting to the row
        # count would plan pages past the end (25 rows at 10 per page would
        # give 25 pages instead of 3).
        if stop < 1:
            stop = total_pages
        if start > stop:
            raise ConfigurationError(f"page range start {start} is past stop {stop}")
        return PageRange(start=start, stop=stop)

    def _build_page(self, number: int, max_rows: int, total_pages: int) -> Page:
        total_rows = self.page_size
        if number == total_pages:
            total_rows = max_rows % self.page_size
        return Page(
            number=number,
            total_rows=total_rows,
            offset=(number - 1) * self.page_size,
            index_field=self.index_field,
            row_type=self.row_type,
        )
