"""Stage protocol for page pipelines.

A stage is any object exposing ``query_page`` and ``paginate_query``. Stages
are matched structurally; there is no base class to inherit from.
"""

from __future__ import annotations

from collections.abc import Awaitable
from typing import Protocol, runtime_checkable

from ..models.page import Page


@runtime_checkable
class Stager(Protocol):
    """Protocol for pipeline stages.

    ``query_page`` populates or transforms ``page.rows`` in place. It may be a
    plain or an async method and reports failure by raising. The engine calls
    it once per page, in pipeline order.

    ``paginate_query`` renders the query that selects the page's rows from the
    stage's source. It is pure and is not called by the engine.
    """

    def query_page(self, page: Page) -> Awaitable[None] | None: ...

    def paginate_query(self, page: Page) -> str: ...


def stage_name(stage: object) -> str:
    """Name used for a stage in errors and logs."""
    return getattr(stage, "name", None) or stage.__class__.__name__


def page_query_params(page: Page) -> dict[str, int | str]:
    """Pagination parameters selecting the rows of ``page``."""
    params: dict[str, int | str] = {
        "page": page.number,
        "limit": page.total_rows,
        "offset": page.offset,
    }
    if page.index_field:
        params["order_by"] = page.index_field
    return params
