"""Page data models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..core.exceptions import StageError


class PageRange(BaseModel):
    """Closed interval of page numbers.

    Values below 1 mean "unset" and are filled in by the paginator
    (start=1, stop=last page).
    """

    start: int = 0
    stop: int = 0

    @model_validator(mode="after")
    def validate_bounds(self) -> PageRange:
        """Validate start <= stop when both bounds are set."""
        if self.start >= 1 and self.stop >= 1 and self.start > self.stop:
            raise ValueError("start must be <= stop")
        return self

    @property
    def is_set(self) -> bool:
        return self.start >= 1 and self.stop >= 1

    def __len__(self) -> int:
        if not self.is_set:
            return 0
        return self.stop - self.start + 1


class Page(BaseModel):
    """Unit of work: a fixed-capacity slice of the row range.

    Pages are created empty by the paginator and filled in place by stages.
    A page is owned by one worker at a time.
    """

    number: int = Field(..., ge=1)
    total_rows: int = Field(..., ge=0)
    offset: int = Field(default=0, ge=0)
    index_field: str = ""
    row_type: Any = None
    rows: list[Any] = Field(default_factory=list)
    errors: list[StageError] = Field(default_factory=list)

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @property
    def failed(self) -> bool:
        return bool(self.errors)

    @property
    def is_full(self) -> bool:
        return len(self.rows) >= self.total_rows
