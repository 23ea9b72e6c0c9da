"""Runtime orchestration components."""

from .paging import DEFAULT_PAGE_SIZE, PageExecutor, PagePlan, Paginator

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "PagePlan",
    "Paginator",
    "PageExecutor",
]
