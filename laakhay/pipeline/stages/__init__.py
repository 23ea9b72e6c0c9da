"""Pipeline stages.

Any object with ``query_page`` and ``paginate_query`` can be used as a stage;
the built-in ones cover sqlite and REST sources plus in-memory transforms.
"""

from .base import Stager, page_query_params, stage_name
from .http import HTTPStage
from .sql import SQLiteStage, count_rows
from .transform import FilterStage, MapStage, ValidateStage

__all__ = [
    "Stager",
    "stage_name",
    "page_query_params",
    "SQLiteStage",
    "count_rows",
    "HTTPStage",
    "MapStage",
    "FilterStage",
    "ValidateStage",
]
