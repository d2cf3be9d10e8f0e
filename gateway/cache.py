"""Analysis result caching for the gateway."""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional
import logging

from .contracts import AnalysisResult

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class CacheEntry:
    """Cached analysis result with its write time."""
    result: AnalysisResult
    created_at: datetime


@dataclass(frozen=True)
class CacheStats:
    """Cache statistics snapshot."""
    total_entries: int
    hit_count: int
    miss_count: int
    eviction_count: int
    hit_rate: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entries": self.total_entries,
            "hits": self.hit_count,
            "misses": self.miss_count,
            "evictions": self.eviction_count,
            "hitRate": round(self.hit_rate, 4),
        }


class AnalysisCache:
    """
    Fingerprint-keyed cache of provider results.

    Entries older than the TTL are absent and are dropped on read. Writes for
    an existing fingerprint overwrite silently.
    """

    def __init__(
        self,
        ttl_seconds: float = 3600.0,
        clock: Optional[Clock] = None,
        max_entries: int = 1000
    ):
        self._ttl = ttl_seconds
        self._clock = clock or datetime.now
        self._max_entries = max_entries
        self._cache: Dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, fingerprint: str) -> Optional[AnalysisResult]:
        """Get a live cached result, or None."""
        entry = self._cache.get(fingerprint)

        if entry is None:
            self._misses += 1
            return None

        if not self._is_valid(entry):
            logger.warning("Dropping malformed cache entry %s", fingerprint[:12])
            del self._cache[fingerprint]
            self._misses += 1
            return None

        age = (self._clock() - entry.created_at).total_seconds()
        if age > self._ttl:
            del self._cache[fingerprint]
            self._misses += 1
            return None

        self._hits += 1
        return entry.result

    def put(self, fingerprint: str, result: AnalysisResult):
        """Store a result under fingerprint, stamped with the clock's time."""
        if fingerprint not in self._cache and len(self._cache) >= self._max_entries:
            self._evict_oldest()

        self._cache[fingerprint] = CacheEntry(result=result, created_at=self._clock())

    def _is_valid(self, entry: object) -> bool:
        return (
            isinstance(entry, CacheEntry)
            and isinstance(entry.result, AnalysisResult)
            and isinstance(entry.created_at, datetime)
        )

    def _evict_oldest(self):
        """Evict oldest entry."""
        if not self._cache:
            return

        oldest_key = min(
            self._cache.keys(),
            key=lambda k: getattr(self._cache[k], 'created_at', datetime.min)
        )
        del self._cache[oldest_key]
        self._evictions += 1

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, fingerprint: str) -> bool:
        return fingerprint in self._cache

    def get_stats(self) -> CacheStats:
        """Snapshot reported under status["cache"]."""
        total = self._hits + self._misses
        hit_rate = self._hits / total if total > 0 else 0.0

        return CacheStats(
            total_entries=len(self._cache),
            hit_count=self._hits,
            miss_count=self._misses,
            eviction_count=self._evictions,
            hit_rate=hit_rate,
        )
