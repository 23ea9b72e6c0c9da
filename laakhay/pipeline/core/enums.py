"""Core enumerations."""

from enum import Enum


class ErrorPolicy(str, Enum):
    """How a run reacts to stage failures.

    FAIL_FAST stops dispatching new pages on the first failure and raises it,
    discarding partial results. COLLECT processes every page and leaves the
    failures on each page's ``errors`` list.
    """

    FAIL_FAST = "fail_fast"
    COLLECT = "collect"
