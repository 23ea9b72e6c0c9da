"""Structured logging for paging and run execution.

This module provides telemetry hooks for the paginator and the execution
engine, emitting event-named log records with structured ``extra`` payloads.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def log_page_plan(
    *,
    job_id: str,
    total_pages: int,
    page_size: int,
    max_rows: int,
    start: int,
    stop: int,
) -> None:
    """Log page plan creation.

    Args:
        job_id: Job identifier
        total_pages: Resolved total page count
        page_size: Rows per page
        max_rows: Total rows requested
        start: First page number planned
        stop: Last page number planned
    """
    logger.info(
        "page_plan_created",
        extra={
            "job_id": job_id,
            "total_pages": total_pages,
            "page_size": page_size,
            "max_rows": max_rows,
            "start": start,
            "stop": stop,
            "pages_planned": max(stop - start + 1, 0),
        },
    )


def log_invalid_config(*, job_id: str, error_message: str) -> None:
    """Log a configuration error that stops the job."""
    logger.critical(
        "invalid_configuration",
        extra={"job_id": job_id, "error_message": error_message},
    )


def log_page_completed(
    *,
    job_id: str,
    page_number: int,
    rows: int,
    errors: int,
    latency_ms: float | None = None,
) -> None:
    """Log a page arriving at the sink.

    Args:
        job_id: Job identifier
        page_number: Page number
        rows: Rows held by the page after all stages
        errors: Stage errors recorded on the page
        latency_ms: Time spent in stages (optional)
    """
    logger.info(
        "page_completed",
        extra={
            "job_id": job_id,
            "page_number": page_number,
            "rows": rows,
            "errors": errors,
            "latency_ms": latency_ms,
        },
    )


def log_stage_error(
    *,
    job_id: str,
    page_number: int,
    stage: str,
    error_type: str,
    error_message: str,
) -> None:
    """Log a stage failure on a page.

    Args:
        job_id: Job identifier
        page_number: Page the stage failed on
        stage: Stage name
        error_type: Type of the underlying exception
        error_message: Error message
    """
    logger.error(
        "page_stage_error",
        extra={
            "job_id": job_id,
            "page_number": page_number,
            "stage": stage,
            "error_type": error_type,
            "error_message": error_message,
        },
    )


def log_run_complete(
    *,
    job_id: str,
    pages_completed: int,
    pages_failed: int,
    workers: int,
    total_latency_ms: float | None = None,
) -> None:
    """Log completion of a run."""
    logger.info(
        "run_complete",
        extra={
            "job_id": job_id,
            "pages_completed": pages_completed,
            "pages_failed": pages_failed,
            "workers": workers,
            "total_latency_ms": total_latency_ms,
        },
    )


def log_run_cancelled(*, job_id: str, pages_completed: int, reason: str) -> None:
    """Log a run stopped before all pages were processed."""
    logger.warning(
        "run_cancelled",
        extra={
            "job_id": job_id,
            "pages_completed": pages_completed,
            "reason": reason,
        },
    )
