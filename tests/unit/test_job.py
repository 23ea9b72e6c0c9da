"""Unit tests for the Job aggregate."""

from __future__ import annotations

import asyncio
import sqlite3

import pytest
from pydantic import ValidationError

from laakhay.pipeline import (
    ConfigurationError,
    ErrorPolicy,
    Job,
    JobConfig,
    MapStage,
    Page,
    PageRange,
    Record,
    RunCancelledError,
    SQLiteStage,
    StageError,
)


class CountingStage:
    """Fills pages with their row offsets."""

    name = "counting"

    async def query_page(self, page: Page) -> None:
        await asyncio.sleep(0)
        page.rows.extend(Record(values=(page.offset + i,)) for i in range(page.total_rows))

    def paginate_query(self, page: Page) -> str:
        return f"{page.offset}:{page.total_rows}"


class ExplodingStage:
    name = "exploding"

    def query_page(self, page: Page) -> None:
        if page.number == 2:
            raise KeyError("missing column")

    def paginate_query(self, page: Page) -> str:
        return ""


@pytest.fixture
def trades_db(tmp_path):
    """Sqlite database with 23 trades."""
    path = tmp_path / "trades.db"
    conn = sqlite3.connect(path)
    conn.execute("CREATE TABLE trades (id INTEGER PRIMARY KEY, price REAL)")
    conn.executemany(
        "INSERT INTO trades (id, price) VALUES (?, ?)",
        [(i, 100.0 + i) for i in range(1, 24)],
    )
    conn.commit()
    conn.close()
    return str(path)


class TestJobConfig:
    """Test JobConfig validation."""

    def test_defaults(self):
        config = JobConfig()
        assert config.page_size == 10
        assert config.process_limit == 1
        assert config.page_range == PageRange()
        assert config.error_policy is ErrorPolicy.FAIL_FAST

    def test_zero_process_limit_rejected(self):
        """A job without workers could never process a page."""
        with pytest.raises(ValidationError):
            JobConfig(process_limit=0)

    def test_negative_page_size_rejected(self):
        with pytest.raises(ValidationError):
            JobConfig(page_size=-5)

    def test_page_range_from_dict(self):
        config = JobConfig(page_range={"start": 2, "stop": 4})
        assert config.page_range == PageRange(start=2, stop=4)

    def test_inverted_page_range_rejected(self):
        with pytest.raises(ValidationError):
            JobConfig(page_range={"start": 5, "stop": 2})

    def test_profile_path_existing_file_rejected(self, tmp_path):
        target = tmp_path / "profile.out"
        target.write_text("")

        with pytest.raises(ValidationError, match="not a directory"):
            JobConfig(profile_path=target)

    def test_profile_path_missing_directory_accepted(self, tmp_path):
        config = JobConfig(profile_path=tmp_path / "profiles" / "run1")
        assert config.profile_path == tmp_path / "profiles" / "run1"


class TestJobPaginate:
    """Test Job.paginate."""

    def test_paginate_sets_job_state(self):
        job = Job(page_size=10, index_field="id")

        pages = job.paginate(25)

        assert pages is job.pages
        assert job.max_rows == 25
        assert job.page_size == 10
        assert job.total_pages == 3
        assert job.page_range == PageRange(start=1, stop=3)
        assert [p.total_rows for p in pages] == [10, 10, 5]
        assert all(p.index_field == "id" for p in pages)

    def test_paginate_default_page_size(self):
        job = Job(page_size=0)
        job.paginate(20)

        assert job.page_size == 10
        assert [p.total_rows for p in job.pages] == [10, 10, 0]

    def test_paginate_invalid_rows_leaves_job_untouched(self):
        job = Job()

        with pytest.raises(ConfigurationError):
            job.paginate(0)

        assert job.pages == []
        assert job.max_rows == 0

    def test_paginate_with_range(self):
        job = Job(JobConfig(page_size=5, page_range=PageRange(start=2, stop=3)))
        pages = job.paginate(40)

        assert [p.number for p in pages] == [2, 3]
        assert len(pages) == job.page_range.stop - job.page_range.start + 1

    def test_paginate_is_idempotent(self):
        job = Job(page_size=4, page_range={"start": 2})
        first = list(job.paginate(17))
        second = job.paginate(17)

        assert first == second

    def test_paginate_counts_rows_from_source(self, trades_db):
        job = Job(
            conn_string=trades_db,
            total_rows_query="SELECT COUNT(*) FROM trades",
            page_size=10,
        )

        job.paginate()

        assert job.max_rows == 23
        assert [p.total_rows for p in job.pages] == [10, 10, 3]

    def test_resolve_max_rows_requires_query(self):
        with pytest.raises(ConfigurationError, match="total_rows_query"):
            Job().resolve_max_rows()

    def test_overrides_update_config(self):
        base = JobConfig(page_size=50, process_limit=2)
        job = Job(base, process_limit=8)

        assert job.config.page_size == 50
        assert job.config.process_limit == 8
        assert base.process_limit == 2


class TestJobRun:
    """Test Job.run."""

    @pytest.mark.asyncio
    async def test_run_requires_paginate(self):
        job = Job(pipeline=[CountingStage()])

        with pytest.raises(ConfigurationError, match="paginate"):
            await job.run()

    @pytest.mark.asyncio
    async def test_run_returns_all_pages(self):
        job = Job(page_size=10, process_limit=3, pipeline=[CountingStage()])
        job.paginate(95)

        results = await job.run()

        assert sorted(p.number for p in results) == list(range(1, 11))
        assert sum(len(p.rows) for p in results) == 95
        assert not job.running

    @pytest.mark.asyncio
    async def test_run_applies_stages_in_order(self):
        double = MapStage(lambda r: r.pack([r.values[0] * 2]), name="double")
        inc = MapStage(lambda r: r.pack([r.values[0] + 1]), name="inc")
        job = Job(page_size=5, process_limit=2, pipeline=[CountingStage(), double, inc])
        job.paginate(9)

        results = await job.run()

        rows = sorted(r.values[0] for p in results for r in p.rows)
        assert rows == [i * 2 + 1 for i in range(9)]

    @pytest.mark.asyncio
    async def test_run_raises_first_stage_error(self):
        job = Job(page_size=10, process_limit=2, pipeline=[CountingStage(), ExplodingStage()])
        job.paginate(50)

        with pytest.raises(StageError) as exc_info:
            await job.run()

        assert exc_info.value.page_number == 2
        assert exc_info.value.stage == "exploding"
        assert isinstance(exc_info.value.__cause__, KeyError)

    @pytest.mark.asyncio
    async def test_run_collect_policy(self):
        job = Job(
            page_size=10,
            process_limit=2,
            error_policy=ErrorPolicy.COLLECT,
            pipeline=[CountingStage(), ExplodingStage()],
        )
        job.paginate(50)

        results = await job.run()

        assert len(results) == 6
        assert [p.number for p in results if p.errors] == [2]

    @pytest.mark.asyncio
    async def test_cancel_run(self):
        release = asyncio.Event()
        started = asyncio.Event()

        class SlowStage:
            async def query_page(self, page: Page) -> None:
                started.set()
                await release.wait()

            def paginate_query(self, page: Page) -> str:
                return ""

        job = Job(page_size=10, process_limit=2, pipeline=[SlowStage()])
        job.paginate(200)
        task = asyncio.create_task(job.run())
        await asyncio.wait_for(started.wait(), timeout=1.0)

        assert job.running
        with pytest.raises(ConfigurationError, match="already running"):
            await job.run()
        with pytest.raises(ConfigurationError, match="pipeline"):
            job.add_stage(CountingStage())

        job.cancel()
        release.set()
        with pytest.raises(RunCancelledError):
            await asyncio.wait_for(task, timeout=1.0)
        assert not job.running

    @pytest.mark.asyncio
    async def test_run_with_sqlite_stage(self, trades_db):
        stage = SQLiteStage(trades_db, "trades", index_field="id", columns=["id", "price"])
        job = Job(
            JobConfig(
                conn_string=trades_db,
                total_rows_query="SELECT COUNT(*) FROM trades",
                table_name="trades",
                index_field="id",
                row_type=Record(),
                page_size=5,
                process_limit=3,
            ),
            pipeline=[stage],
        )
        job.paginate()

        results = await job.run()

        ids = sorted(r.values[0] for p in results for r in p.rows)
        assert ids == list(range(1, 24))

    @pytest.mark.asyncio
    async def test_run_writes_profile(self, tmp_path):
        job = Job(page_size=10, profile_path=tmp_path, pipeline=[CountingStage()])
        job.paginate(30)

        await job.run()

        assert (tmp_path / "cpu.pstats").exists()

    @pytest.mark.asyncio
    async def test_run_keeps_result_when_profile_write_fails(
        self, tmp_path, monkeypatch, caplog
    ):
        """A profiler that fails to write is logged, the pages are still returned."""

        class BrokenProfiler:
            def stop(self):
                raise FileExistsError("cpu.pstats")

        monkeypatch.setattr(
            "laakhay.pipeline.job.start_profile", lambda path: BrokenProfiler()
        )
        job = Job(page_size=10, profile_path=tmp_path, pipeline=[CountingStage()])
        job.paginate(25)

        results = await job.run()

        assert sorted(p.number for p in results) == [1, 2, 3]
        assert any(r.getMessage() == "profile_write_failed" for r in caplog.records)
        assert not job.running
