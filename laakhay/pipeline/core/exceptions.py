"""Custom exception hierarchy."""

from __future__ import annotations

from typing import Any


class PipelineError(Exception):
    """Base exception for all library errors."""

    pass


class ConfigurationError(PipelineError, ValueError):
    """Invalid job configuration or job state.

    Raised for invalid arguments (e.g. a non-positive row count) and for
    operations invoked in the wrong order (e.g. running before paginating).
    """

    pass


class StageError(PipelineError):
    """A stage failed while processing a page.

    The underlying exception is chained as ``__cause__``.
    """

    def __init__(self, message: str, page_number: int, stage: str) -> None:
        super().__init__(message)
        self.page_number = page_number
        self.stage = stage

    @classmethod
    def wrap(cls, exc: BaseException, page_number: int, stage: str) -> StageError:
        """Build a StageError for ``exc`` raised by ``stage`` on a page."""
        error = cls(f"Stage {stage} failed on page {page_number}: {exc}", page_number, stage)
        error.__cause__ = exc
        return error

    @property
    def cause(self) -> Any:
        return self.__cause__


class RunCancelledError(PipelineError):
    """Run was cancelled before all pages were processed."""

    def __init__(self, message: str, pages_completed: int = 0) -> None:
        super().__init__(message)
        self.pages_completed = pages_completed
