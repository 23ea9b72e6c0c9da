"""Row codec protocol and the default generic row."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict


@runtime_checkable
class Packer(Protocol):
    """Converts a row to and from a plain sequence of values.

    The engine never looks inside rows; stages use ``pack`` on the job's
    row type to build rows from fetched values and collaborators use
    ``unpack`` to serialize them.
    """

    def unpack(self) -> list[Any]: ...

    def pack(self, values: Iterable[Any]) -> Packer: ...


Row = Packer


class Record(BaseModel):
    """Schema-less row holding an ordered tuple of values."""

    values: tuple[Any, ...] = ()

    model_config = ConfigDict(frozen=True)

    def unpack(self) -> list[Any]:
        return list(self.values)

    def pack(self, values: Iterable[Any]) -> Record:
        return Record(values=tuple(values))

    def __len__(self) -> int:
        return len(self.values)
