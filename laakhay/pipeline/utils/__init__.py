"""Utility helpers."""

from .profiling import Profiler, start_profile

__all__ = ["Profiler", "start_profile"]
