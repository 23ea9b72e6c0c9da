"""cProfile hook wrapped around a run."""

from __future__ import annotations

import cProfile
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

PROFILE_FILENAME = "cpu.pstats"


class Profiler:
    """Collects a CPU profile until ``stop`` is called.

    Stats are written to ``<path>/cpu.pstats`` and can be read back with
    ``pstats.Stats``.
    """

    def __init__(self, path: str | Path = ".") -> None:
        self.output = Path(path) / PROFILE_FILENAME
        self._profile = cProfile.Profile()
        self._running = False

    def start(self) -> Profiler:
        self._profile.enable()
        self._running = True
        logger.info("profile_started", extra={"output": str(self.output)})
        return self

    def stop(self) -> None:
        """Stop profiling and dump stats. Safe to call more than once."""
        if not self._running:
            return
        self._profile.disable()
        self._running = False
        self.output.parent.mkdir(parents=True, exist_ok=True)
        self._profile.dump_stats(str(self.output))
        logger.info("profile_written", extra={"output": str(self.output)})

    def __enter__(self) -> Profiler:
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()


def start_profile(path: str | Path = ".") -> Profiler:
    """Start profiling into ``path`` and return the running profiler."""
    return Profiler(path).start()
