"""Paging layer: page planning and concurrent page execution.

Architecture:
    The paging layer consists of:
    - definitions.py: Plan structures (PagePlan) and the page count formula
    - planners.py: Page planning (splits a row count into Page descriptors)
    - executors.py: Concurrent execution of pages through a stage pipeline
    - telemetry.py: Structured logging
"""

from __future__ import annotations

from .definitions import DEFAULT_PAGE_SIZE, PagePlan, total_pages_for
from .executors import PageExecutor
from .planners import Paginator

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "PagePlan",
    "Paginator",
    "PageExecutor",
    "total_pages_for",
]
