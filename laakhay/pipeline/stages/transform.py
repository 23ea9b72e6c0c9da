"""In-memory row transform stages."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from urllib.parse import urlencode

from ..models.page import Page
from .base import page_query_params


class MapStage:
    """Replace every row with ``fn(row)``."""

    def __init__(self, fn: Callable[[Any], Any], *, name: str | None = None) -> None:
        self._fn = fn
        self.name = name or f"map:{getattr(fn, '__name__', 'fn')}"

    def query_page(self, page: Page) -> None:
        page.rows = [self._fn(row) for row in page.rows]

    def paginate_query(self, page: Page) -> str:
        return urlencode(page_query_params(page))


class FilterStage:
    """Keep only rows for which ``predicate(row)`` is true."""

    def __init__(self, predicate: Callable[[Any], bool], *, name: str | None = None) -> None:
        self._predicate = predicate
        self.name = name or f"filter:{getattr(predicate, '__name__', 'predicate')}"

    def query_page(self, page: Page) -> None:
        page.rows = [row for row in page.rows if self._predicate(row)]

    def paginate_query(self, page: Page) -> str:
        return urlencode(page_query_params(page))


class ValidateStage:
    """Fail the page if any row does not satisfy ``predicate``.

    Rows are left untouched.
    """

    def __init__(
        self,
        predicate: Callable[[Any], bool],
        message: str = "row failed validation",
        *,
        name: str | None = None,
    ) -> None:
        self._predicate = predicate
        self._message = message
        self.name = name or "validate"

    def query_page(self, page: Page) -> None:
        bad = [i for i, row in enumerate(page.rows) if not self._predicate(row)]
        if bad:
            raise ValueError(f"{self._message} (page {page.number}, rows {bad})")

    def paginate_query(self, page: Page) -> str:
        return urlencode(page_query_params(page))
