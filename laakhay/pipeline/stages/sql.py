"""SQLite-backed fetch stage.

Reads one page of rows per call using LIMIT/OFFSET ordered by the job's
index field. Queries run in a worker thread so the event loop keeps serving
other pages.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from collections.abc import Sequence
from typing import Any

from ..core.exceptions import ConfigurationError
from ..models.page import Page
from ..models.row import Packer, Record

logger = logging.getLogger(__name__)


def _quote(identifier: str) -> str:
    if not identifier:
        raise ConfigurationError("SQL identifier must not be empty")
    return '"' + identifier.replace('"', '""') + '"'


def count_rows(conn_string: str, total_rows_query: str) -> int:
    """Run ``total_rows_query`` and return its first column as an int.

    Args:
        conn_string: Path to the sqlite database
        total_rows_query: Query returning a single row count,
            e.g. ``SELECT COUNT(*) FROM trades``

    Returns:
        Row count

    Raises:
        ConfigurationError: If the query returns no rows
    """
    conn = sqlite3.connect(conn_string)
    try:
        row = conn.execute(total_rows_query).fetchone()
    finally:
        conn.close()
    if row is None:
        raise ConfigurationError(f"Row count query returned nothing: {total_rows_query}")
    return int(row[0])


class SQLiteStage:
    """Fetch a page of rows from a sqlite table.

    Attributes:
        conn_string: Path to the sqlite database
        table_name: Table to read from
        index_field: Column rows are ordered by (falls back to the page's)
        row_type: Prototype row whose ``pack`` builds each fetched row
        columns: Columns to select (all when empty)
    """

    name = "sqlite"

    def __init__(
        self,
        conn_string: str,
        table_name: str,
        *,
        index_field: str = "",
        row_type: Packer | None = None,
        columns: Sequence[str] = (),
    ) -> None:
        self.conn_string = conn_string
        self.table_name = table_name
        self.index_field = index_field
        self.row_type = row_type
        self.columns = tuple(columns)

    def paginate_query(self, page: Page) -> str:
        cols = ", ".join(_quote(c) for c in self.columns) if self.columns else "*"
        query = f"SELECT {cols} FROM {_quote(self.table_name)}"
        index_field = self.index_field or page.index_field
        if index_field:
            query += f" ORDER BY {_quote(index_field)}"
        return f"{query} LIMIT {page.total_rows} OFFSET {page.offset}"

    async def query_page(self, page: Page) -> None:
        if page.total_rows == 0:
            return
        query = self.paginate_query(page)
        values = await asyncio.to_thread(self._fetch, query)
        prototype = self.row_type or page.row_type or Record()
        page.rows.extend(prototype.pack(v) for v in values)
        logger.debug(
            "sqlite_page_fetched",
            extra={"page": page.number, "rows": len(values), "table": self.table_name},
        )

    def _fetch(self, query: str) -> list[tuple[Any, ...]]:
        conn = sqlite3.connect(self.conn_string)
        try:
            return conn.execute(query).fetchall()
        finally:
            conn.close()
