"""In-memory TTL cache of completed project analyses."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from skill_scout.models import CacheEntry, ProjectAnalysis

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 30 * 60


class AnalysisCache:
    """Map project ids to analyses, expiring entries after a fixed TTL.

    An entry is stale once ``now - timestamp >= ttl_seconds``; stale entries
    are dropped the first time they are looked up.  Owned by a single event
    loop, so no locking is done.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, project_id: str) -> ProjectAnalysis | None:
        entry = self.get_entry(project_id)
        return entry.analysis if entry is not None else None

    def get_entry(self, project_id: str) -> CacheEntry | None:
        """Return the live entry for *project_id*, purging it if expired."""
        entry = self._entries.get(project_id)
        if entry is None:
            return None
        if self._clock() - entry.timestamp >= self.ttl_seconds:
            logger.debug("Cached analysis for %s expired", project_id)
            del self._entries[project_id]
            return None
        return entry

    def set(self, project_id: str, analysis: ProjectAnalysis) -> None:
        self._entries[project_id] = CacheEntry(analysis=analysis, timestamp=self._clock())

    def invalidate(self, project_id: str) -> bool:
        """Drop one entry. Returns True if something was removed."""
        return self._entries.pop(project_id, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, project_id: object) -> bool:
        return isinstance(project_id, str) and self.get_entry(project_id) is not None
