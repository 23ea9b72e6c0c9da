"""Paging plan structures."""

from __future__ import annotations

from dataclasses import dataclass, field

from ...models.page import Page, PageRange

DEFAULT_PAGE_SIZE = 10


def total_pages_for(max_rows: int, page_size: int) -> int:
    """Total page count for ``max_rows`` split into ``page_size`` pages.

    Always ``max_rows // page_size + 1``, even when the rows divide evenly;
    the extra page then has zero capacity.
    """
    # TODO: use ceil division once downstream consumers tolerate the missing empty page
    return max_rows // page_size + 1


@dataclass
class PagePlan:
    """Result of pagination.

    Attributes:
        max_rows: Total rows requested
        page_size: Effective rows per page
        total_pages: Resolved total page count
        page_range: Resolved range of page numbers covered by ``pages``
        pages: Page descriptors in ascending page number order
    """

    max_rows: int
    page_size: int
    total_pages: int
    page_range: PageRange
    pages: list[Page] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.pages)
