"""Concurrent page execution.

This module provides the PageExecutor that fans pages out to a fixed pool of
worker tasks, runs every page through the stage pipeline, and fans processed
pages back in.

Architecture:
    One run is three groups of tasks joined by bounded queues:
    - source: puts pages on the supply queue in page order
    - workers: take a page, run all stages on it, put it on the results queue
    - sink: the calling coroutine drains the results queue
    A supervisor task closes the results queue once every worker has exited.
    A single cancel event stops the source and the workers at their next
    queue operation; a stage already running is never interrupted.

Result order follows worker completion, not page number.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Coroutine, Sequence
from time import perf_counter
from typing import Any

from ...core.enums import ErrorPolicy
from ...core.exceptions import (
    ConfigurationError,
    PipelineError,
    RunCancelledError,
    StageError,
)
from ...models.page import Page
from ...stages.base import Stager, stage_name
from .telemetry import (
    log_page_completed,
    log_run_cancelled,
    log_run_complete,
    log_stage_error,
)

# Marks the end of a queue (the supply queue gets one per worker).
_CLOSED: Any = object()


async def _until_cancelled(
    coro: Coroutine[Any, Any, Any], done: asyncio.Event
) -> tuple[bool, Any]:
    """Await ``coro`` unless ``done`` is set first.

    Returns:
        ``(True, result)`` if ``coro`` finished, ``(False, None)`` otherwise
    """
    if done.is_set():
        coro.close()
        return False, None

    op = asyncio.ensure_future(coro)
    stop = asyncio.ensure_future(done.wait())
    try:
        await asyncio.wait({op, stop}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        stop.cancel()
        if not op.done():
            op.cancel()

    if op.done() and not op.cancelled():
        return True, op.result()
    return False, None


class PageExecutor:
    """Runs pages through an ordered stage pipeline on a pool of workers.

    A stage failure is recorded on the page as a StageError and the page's
    remaining stages still run. What happens to the run is decided by the
    error policy: FAIL_FAST stops dispatching pages and raises the first
    failure, COLLECT processes everything and returns all pages.
    """

    def __init__(
        self,
        stages: Sequence[Stager],
        *,
        concurrency: int = 1,
        error_policy: ErrorPolicy = ErrorPolicy.FAIL_FAST,
        job_id: str = "unknown",
    ) -> None:
        """Initialize page executor.

        Args:
            stages: Stages applied to every page, left to right
            concurrency: Number of worker tasks (must be >= 1)
            error_policy: Reaction to stage failures
            job_id: Job identifier used in logs

        Raises:
            ConfigurationError: If concurrency < 1
        """
        if concurrency < 1:
            raise ConfigurationError(f"concurrency must be >= 1, got {concurrency}")
        self._stages = tuple(stages)
        self._concurrency = concurrency
        self._error_policy = ErrorPolicy(error_policy)
        self._job_id = job_id

        self._done: asyncio.Event | None = None
        self._cancel_requested = False
        self._first_error: StageError | None = None

    @property
    def running(self) -> bool:
        return self._done is not None

    @property
    def first_error(self) -> StageError | None:
        """First stage failure of the current or last run."""
        return self._first_error

    def cancel(self) -> None:
        """Cancel the current run.

        Pages already inside a stage finish that stage's pipeline but are not
        delivered; ``execute`` then raises RunCancelledError. No-op when idle.
        """
        if self._done is None:
            return
        self._cancel_requested = True
        self._done.set()

    async def process_page(self, page: Page) -> Page:
        """Run ``page`` through every stage in order.

        Args:
            page: Page to process (mutated in place)

        Returns:
            The same page
        """
        for stage in self._stages:
            try:
                result = stage.query_page(page)
                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError as e:
                # Only a cancel aimed at this worker propagates; one raised by
                # the stage itself is a stage failure.
                task = asyncio.current_task()
                if task is not None and task.cancelling():
                    raise
                self._record_failure(page, stage, e)
            except Exception as e:
                self._record_failure(page, stage, e)
        return page

    def _record_failure(self, page: Page, stage: Stager, exc: BaseException) -> None:
        error = StageError.wrap(exc, page.number, stage_name(stage))
        page.errors.append(error)
        log_stage_error(
            job_id=self._job_id,
            page_number=page.number,
            stage=error.stage,
            error_type=type(exc).__name__,
            error_message=str(exc),
        )
        self._report(error)

    async def execute(self, pages: Sequence[Page]) -> list[Page]:
        """Process ``pages`` concurrently.

        Args:
            pages: Pages to process, dispatched in the given order

        Returns:
            Processed pages in completion order

        Raises:
            StageError: First stage failure (FAIL_FAST policy)
            RunCancelledError: If ``cancel`` was called during the run
            ConfigurationError: If the executor is already running
        """
        if self._done is not None:
            raise ConfigurationError("Executor is already running")

        done = asyncio.Event()
        self._done = done
        self._cancel_requested = False
        self._first_error = None

        supply: asyncio.Queue[Any] = asyncio.Queue(maxsize=1)
        results: asyncio.Queue[Any] = asyncio.Queue(maxsize=1)
        run_start = perf_counter()

        source = asyncio.create_task(self._source(pages, supply, done))
        workers = [
            asyncio.create_task(self._worker(supply, results, done))
            for _ in range(self._concurrency)
        ]
        supervisor = asyncio.create_task(self._close_when_done(workers, results))

        collected: list[Page] = []
        try:
            while True:
                item = await results.get()
                if item is _CLOSED:
                    break
                page, latency_ms = item
                collected.append(page)
                log_page_completed(
                    job_id=self._job_id,
                    page_number=page.number,
                    rows=len(page.rows),
                    errors=len(page.errors),
                    latency_ms=latency_ms,
                )

            for worker in workers:
                if worker.cancelled():
                    raise PipelineError("A worker was cancelled before the run finished")
                if worker.exception() is not None:
                    raise worker.exception()  # type: ignore[misc]

            if self._first_error is not None and self._error_policy is ErrorPolicy.FAIL_FAST:
                log_run_cancelled(
                    job_id=self._job_id,
                    pages_completed=len(collected),
                    reason=str(self._first_error),
                )
                raise self._first_error

            if self._cancel_requested:
                log_run_cancelled(
                    job_id=self._job_id,
                    pages_completed=len(collected),
                    reason="cancelled by caller",
                )
                raise RunCancelledError(
                    f"Run cancelled after {len(collected)} of {len(pages)} pages",
                    pages_completed=len(collected),
                )
        finally:
            done.set()
            tasks = [source, supervisor, *workers]
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            self._done = None

        log_run_complete(
            job_id=self._job_id,
            pages_completed=len(collected),
            pages_failed=sum(1 for p in collected if p.errors),
            workers=self._concurrency,
            total_latency_ms=(perf_counter() - run_start) * 1000.0,
        )
        return collected

    def _report(self, error: StageError) -> None:
        if self._first_error is not None:
            return
        self._first_error = error
        if self._error_policy is ErrorPolicy.FAIL_FAST and self._done is not None:
            self._done.set()

    async def _source(
        self, pages: Sequence[Page], supply: asyncio.Queue[Any], done: asyncio.Event
    ) -> None:
        for page in pages:
            sent, _ = await _until_cancelled(supply.put(page), done)
            if not sent:
                return
        for _ in range(self._concurrency):
            sent, _ = await _until_cancelled(supply.put(_CLOSED), done)
            if not sent:
                return

    async def _worker(
        self, supply: asyncio.Queue[Any], results: asyncio.Queue[Any], done: asyncio.Event
    ) -> None:
        while True:
            received, page = await _until_cancelled(supply.get(), done)
            if not received or page is _CLOSED:
                return
            page_start = perf_counter()
            processed = await self.process_page(page)
            latency_ms = (perf_counter() - page_start) * 1000.0
            sent, _ = await _until_cancelled(results.put((processed, latency_ms)), done)
            if not sent:
                return

    async def _close_when_done(
        self, workers: list[asyncio.Task[None]], results: asyncio.Queue[Any]
    ) -> None:
        await asyncio.gather(*workers, return_exceptions=True)
        await results.put(_CLOSED)
