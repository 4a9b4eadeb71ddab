"""Progress reporting side channel for the collector.

Observers only watch; nothing they do may change what gets collected, and a
``NullProgress`` run produces exactly the same report.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class ProgressObserver(ABC):
    """Receives per-repository step counts. Both methods must be thread-safe."""

    @abstractmethod
    def set_total(self, repo_index: int, total: int) -> None:
        """Set (or raise) the number of steps expected for one repository."""

    @abstractmethod
    def increment(self, repo_index: int) -> None:
        """Record one completed step for one repository."""


class NullProgress(ProgressObserver):
    """Discards all progress events."""

    def set_total(self, repo_index: int, total: int) -> None:
        pass

    def increment(self, repo_index: int) -> None:
        pass


class LoggingProgress(ProgressObserver):
    """Logs each completed step and each finished repository."""

    def __init__(self, repos: list[str]) -> None:
        self._repos = list(repos)
        self._lock = threading.Lock()
        self._totals: dict[int, int] = {}
        self._done: dict[int, int] = {}

    def set_total(self, repo_index: int, total: int) -> None:
        with self._lock:
            self._totals[repo_index] = total

    def increment(self, repo_index: int) -> None:
        with self._lock:
            done = self._done.get(repo_index, 0) + 1
            self._done[repo_index] = done
            total = self._totals.get(repo_index, 0)
        name = self._name(repo_index)
        logger.debug("%s: step %d/%d", name, done, total)
        if total and done == total:
            logger.info("%s: done", name)

    def snapshot(self) -> dict[int, tuple[int, int]]:
        """``{repo_index: (done, total)}``."""
        with self._lock:
            return {
                idx: (self._done.get(idx, 0), total)
                for idx, total in self._totals.items()
            }

    def _name(self, repo_index: int) -> str:
        if 0 <= repo_index < len(self._repos):
            return self._repos[repo_index]
        return f"repo #{repo_index}"
