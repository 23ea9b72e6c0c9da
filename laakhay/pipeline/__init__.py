"""Laakhay Pipeline - paginated, concurrent processing of tabular data."""

from .core import (
    ConfigurationError,
    ErrorPolicy,
    PipelineError,
    RunCancelledError,
    StageError,
)
from .io import write_csv, write_pages_csv
from .job import Job, JobConfig
from .models import Packer, Page, PageRange, Record, Row
from .runtime import DEFAULT_PAGE_SIZE, PageExecutor, PagePlan, Paginator
from .stages import (
    FilterStage,
    HTTPStage,
    MapStage,
    SQLiteStage,
    Stager,
    ValidateStage,
    count_rows,
)
from .utils import Profiler, start_profile

__version__ = "0.1.0"

__all__ = [
    "Job",
    "JobConfig",
    "Page",
    "PageRange",
    "Packer",
    "Row",
    "Record",
    "Stager",
    "Paginator",
    "PagePlan",
    "PageExecutor",
    "DEFAULT_PAGE_SIZE",
    "ErrorPolicy",
    "PipelineError",
    "ConfigurationError",
    "StageError",
    "RunCancelledError",
    "SQLiteStage",
    "HTTPStage",
    "MapStage",
    "FilterStage",
    "ValidateStage",
    "count_rows",
    "Profiler",
    "start_profile",
    "write_csv",
    "write_pages_csv",
]
