"""Data models for pages and rows.

Pages are mutable pydantic models (stages append rows and errors in place);
rows are opaque values implementing the ``Packer`` protocol.
"""

from .page import Page, PageRange
from .row import Packer, Record, Row

__all__ = [
    "Page",
    "PageRange",
    "Packer",
    "Row",
    "Record",
]
