#!/usr/bin/env python3
"""Run a synthetic job through in-memory stages."""

from __future__ import annotations

import asyncio
import logging
import random

from laakhay.pipeline import FilterStage, Job, MapStage, Page, Record

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


class SyntheticSource:
    """Fills each page with ``(row_id, value)`` records."""

    name = "synthetic"

    async def query_page(self, page: Page) -> None:
        await asyncio.sleep(random.random() / 100)
        for i in range(page.total_rows):
            row_id = page.offset + i
            page.rows.append(Record(values=(row_id, row_id * row_id)))

    def paginate_query(self, page: Page) -> str:
        return f"rows {page.offset}..{page.offset + page.total_rows - 1}"


async def main() -> None:
    job = Job(
        page_size=25,
        process_limit=4,
        pipeline=[
            SyntheticSource(),
            FilterStage(lambda r: r.values[0] % 2 == 0, name="even"),
            MapStage(lambda r: r.pack([r.values[0], r.values[1] / 2]), name="halve"),
        ],
    )
    job.paginate(230)
    pages = await job.run()
    print("Arrival order:", [p.number for p in pages])
    print("Rows kept:", sum(len(p.rows) for p in pages))


if __name__ == "__main__":
    asyncio.run(main())
