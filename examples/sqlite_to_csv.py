#!/usr/bin/env python3
"""Copy a sqlite table to CSV page by page.

Usage:
    python examples/sqlite_to_csv.py trades.db trades id out.csv --page-size 500 --workers 4
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from laakhay.pipeline import (
    Job,
    JobConfig,
    PipelineError,
    Record,
    SQLiteStage,
    write_pages_csv,
)

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Export a sqlite table to CSV using a paged pipeline")
    p.add_argument("database")
    p.add_argument("table")
    p.add_argument("index_field")
    p.add_argument("output")
    p.add_argument("--page-size", type=int, default=100)
    p.add_argument("--workers", type=int, default=4)
    p.add_argument("--start", type=int, default=0, help="First page (default: 1)")
    p.add_argument("--stop", type=int, default=0, help="Last page (default: last)")
    p.add_argument("--profile", default=None, help="Directory for a CPU profile")
    return p.parse_args()


async def main() -> int:
    args = parse_args()
    config = JobConfig(
        name=f"export:{args.table}",
        conn_string=args.database,
        total_rows_query=f'SELECT COUNT(*) FROM "{args.table}"',
        table_name=args.table,
        index_field=args.index_field,
        row_type=Record(),
        page_size=args.page_size,
        process_limit=args.workers,
        page_range={"start": args.start, "stop": args.stop},
        profile_path=args.profile,
    )
    stage = SQLiteStage(args.database, args.table, index_field=args.index_field)
    job = Job(config, pipeline=[stage])

    try:
        pages = job.paginate()
        print(f"{job.max_rows} rows -> {len(pages)} pages of {job.page_size}")
        results = await job.run()
    except PipelineError as e:
        print(f"Export failed: {e}", file=sys.stderr)
        return 1

    written = write_pages_csv(args.output, results)
    print(f"Wrote {written} rows to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
