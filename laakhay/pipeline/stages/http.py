"""REST-backed fetch stage."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlencode

import aiohttp

from ..models.page import Page
from ..models.row import Packer, Record
from .base import page_query_params

logger = logging.getLogger(__name__)


class HTTPStage:
    """Fetch a page of rows from a paginated JSON endpoint.

    The endpoint receives ``page``, ``limit``, ``offset`` and ``order_by``
    query parameters and answers with a JSON list of rows, or an object
    holding that list under ``rows_key``. Each row is either a list of
    values or an object whose values are taken in order.

    One aiohttp session is shared by every page. The stage creates and owns
    it unless ``session`` is passed in, in which case closing it is left to
    the caller.
    """

    name = "http"

    def __init__(
        self,
        base_url: str,
        path: str = "",
        *,
        row_type: Packer | None = None,
        rows_key: str | None = None,
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self.base_url = base_url
        self.path = path
        self.row_type = row_type
        self.rows_key = rows_key
        self.headers = headers
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    @property
    def url(self) -> str:
        """Endpoint URL; an absolute ``path`` replaces ``base_url``."""
        if self.path.startswith(("http://", "https://")):
            return self.path
        if not self.path:
            return self.base_url
        return f"{self.base_url.rstrip('/')}/{self.path.lstrip('/')}"

    @property
    def session(self) -> aiohttp.ClientSession:
        """Get or create the session."""
        if not self._owns_session:
            return self._session  # type: ignore[return-value]
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    def paginate_query(self, page: Page) -> str:
        return urlencode(page_query_params(page))

    async def query_page(self, page: Page) -> None:
        if page.total_rows == 0:
            return
        async with self.session.get(
            self.url, params=page_query_params(page), headers=self.headers
        ) as response:
            response.raise_for_status()
            data = await response.json()

        items = self._extract_rows(data)
        prototype = self.row_type or page.row_type or Record()
        page.rows.extend(prototype.pack(self._values(item)) for item in items)
        logger.debug(
            "http_page_fetched",
            extra={"page": page.number, "rows": len(items), "url": self.url},
        )

    async def close(self) -> None:
        """Close the session if this stage created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> HTTPStage:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def _extract_rows(self, data: Any) -> list[Any]:
        if self.rows_key is not None:
            if not isinstance(data, dict) or self.rows_key not in data:
                raise ValueError(f"Response has no '{self.rows_key}' field")
            data = data[self.rows_key]
        if not isinstance(data, list):
            raise ValueError(f"Expected a list of rows, got {type(data).__name__}")
        return data

    @staticmethod
    def _values(item: Any) -> list[Any]:
        if isinstance(item, dict):
            return list(item.values())
        if isinstance(item, (list, tuple)):
            return list(item)
        return [item]
