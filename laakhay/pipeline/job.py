"""Job aggregate: configuration, pagination and pipeline execution.

A Job holds the source metadata and run settings, the ordered stage pipeline,
and the pages produced by ``paginate``. ``run`` pushes those pages through the
pipeline on ``process_limit`` concurrent workers.

Example:
    job = Job(JobConfig(page_size=100, process_limit=4), pipeline=[fetch, clean])
    job.paginate(2500)
    pages = await job.run()
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .core.enums import ErrorPolicy
from .core.exceptions import ConfigurationError
from .models.page import Page, PageRange
from .runtime.paging import DEFAULT_PAGE_SIZE, PageExecutor, Paginator
from .stages.base import Stager
from .stages.sql import count_rows
from .utils.profiling import start_profile

logger = logging.getLogger(__name__)


class JobConfig(BaseModel):
    """Job configuration.

    Attributes:
        name: Job identifier used in logs
        conn_string: Source connection string (e.g. sqlite path)
        total_rows_query: Query returning the source's row count
        table_name: Source table
        index_field: Field rows are ordered by
        row_type: Prototype row used to pack fetched values
        page_size: Rows per page (0 selects the default)
        process_limit: Number of concurrent workers
        page_range: Optional restriction to a range of page numbers
        error_policy: Reaction to stage failures
        profile_path: Directory for a CPU profile of each run (disabled if None)
    """

    name: str = "job"
    conn_string: str = ""
    total_rows_query: str = ""
    table_name: str = ""
    index_field: str = ""
    row_type: Any = None
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=0)
    process_limit: int = Field(default=1, ge=1)
    page_range: PageRange = Field(default_factory=PageRange)
    error_policy: ErrorPolicy = ErrorPolicy.FAIL_FAST
    profile_path: Path | None = None

    model_config = ConfigDict(str_strip_whitespace=True, arbitrary_types_allowed=True)

    @field_validator("profile_path")
    @classmethod
    def validate_profile_path(cls, v: Path | None) -> Path | None:
        """Validate profile_path is a directory or does not exist yet."""
        if v is not None and v.exists() and not v.is_dir():
            raise ValueError(f"profile_path {v} exists and is not a directory")
        return v


class Job:
    """Paginated, concurrent pipeline job.

    ``paginate`` must succeed before ``run``. The pipeline must not be changed
    while a run is in progress.
    """

    def __init__(
        self,
        config: JobConfig | None = None,
        pipeline: Sequence[Stager] = (),
        **overrides: Any,
    ) -> None:
        """Initialize job.

        Args:
            config: Job configuration (defaults to JobConfig())
            pipeline: Stages applied to every page, left to right
            **overrides: JobConfig fields overriding ``config``
        """
        if config is None:
            config = JobConfig(**overrides)
        elif overrides:
            config = JobConfig.model_validate({**dict(config), **overrides})
        self.config = config
        self.pipeline: list[Stager] = list(pipeline)

        self.page_size = config.page_size
        self.page_range = config.page_range
        self.max_rows = 0
        self.total_pages = 0
        self.pages: list[Page] = []

        self._paginated = False
        self._executor: PageExecutor | None = None

    @property
    def running(self) -> bool:
        return self._executor is not None

    def add_stage(self, stage: Stager) -> Job:
        """Append ``stage`` to the pipeline.

        Raises:
            ConfigurationError: If a run is in progress
        """
        if self.running:
            raise ConfigurationError("Cannot change the pipeline while the job is running")
        self.pipeline.append(stage)
        return self

    def resolve_max_rows(self) -> int:
        """Count source rows with the configured ``total_rows_query``.

        Raises:
            ConfigurationError: If conn_string or total_rows_query is missing
        """
        if not self.config.conn_string or not self.config.total_rows_query:
            raise ConfigurationError("conn_string and total_rows_query are required to count rows")
        return count_rows(self.config.conn_string, self.config.total_rows_query)

    def paginate(self, max_rows: int | None = None) -> list[Page]:
        """Split ``max_rows`` rows into pages and store them on the job.

        Args:
            max_rows: Total rows (must be >= 1); counted with
                ``resolve_max_rows`` when None

        Returns:
            The job's pages in page number order

        Raises:
            ConfigurationError: If max_rows < 1 or the page range is invalid
        """
        if max_rows is None:
            max_rows = self.resolve_max_rows()

        paginator = Paginator(
            self.config.page_size,
            index_field=self.config.index_field,
            row_type=self.config.row_type,
            job_id=self.config.name,
        )
        plan = paginator.plan(max_rows, self.config.page_range)

        self.max_rows = plan.max_rows
        self.page_size = plan.page_size
        self.total_pages = plan.total_pages
        self.page_range = plan.page_range
        self.pages = plan.pages
        self._paginated = True
        return self.pages

    async def run(self) -> list[Page]:
        """Run every page through the pipeline.

        Returns:
            Processed pages in completion order (not page order)

        Raises:
            ConfigurationError: If called before ``paginate`` or while running
            StageError: First stage failure (FAIL_FAST policy)
            RunCancelledError: If ``cancel`` was called during the run
        """
        if not self._paginated:
            raise ConfigurationError("paginate() must be called before run()")
        if self.running:
            raise ConfigurationError("Job is already running")

        executor = PageExecutor(
            self.pipeline,
            concurrency=self.config.process_limit,
            error_policy=self.config.error_policy,
            job_id=self.config.name,
        )
        self._executor = executor
        profiler = start_profile(self.config.profile_path) if self.config.profile_path else None
        logger.info(
            "job_run_started",
            extra={
                "job_id": self.config.name,
                "pages": len(self.pages),
                "stages": len(self.pipeline),
                "workers": self.config.process_limit,
            },
        )
        try:
            return await executor.execute(self.pages)
        finally:
            self._executor = None
            if profiler is not None:
                # A profile that cannot be written does not change the run's outcome.
                try:
                    profiler.stop()
                except OSError:
                    logger.error(
                        "profile_write_failed",
                        extra={
                            "job_id": self.config.name,
                            "profile_path": str(self.config.profile_path),
                        },
                        exc_info=True,
                    )

    def cancel(self) -> None:
        """Cancel the run in progress, if any."""
        if self._executor is not None:
            self._executor.cancel()
