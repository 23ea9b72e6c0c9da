"""Core components."""

from .enums import ErrorPolicy
from .exceptions import (
    ConfigurationError,
    PipelineError,
    RunCancelledError,
    StageError,
)

__all__ = [
    "ErrorPolicy",
    "PipelineError",
    "ConfigurationError",
    "StageError",
    "RunCancelledError",
]
