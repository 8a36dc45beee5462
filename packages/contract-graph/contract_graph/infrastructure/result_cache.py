"""
Result Cache - Epoch-based Query Memoization

Keyed by (query_kind, subject). Each entry is stamped with the epoch active at
insertion time; an entry from any other epoch is a miss and is evicted lazily.

Invalidation:
    invalidate_all() bumps the epoch in O(1) (sweep 없음)

Capacity:
    LRU eviction at max_entries. No TTL: correctness, not time, drives eviction.
"""

import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any

from ..common.observability import get_logger
from ..domain.models import QueryKind

logger = get_logger(__name__)


@dataclass(frozen=True)
class CacheKey:
    """(query kind, subject identifier)"""

    kind: QueryKind
    subject: str

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.subject}"


@dataclass(frozen=True)
class CacheEntry:
    """캐시 항목 (payload + epoch stamp)"""

    key: CacheKey
    epoch: int
    payload: Any


class CacheStats:
    """캐시 통계"""

    def __init__(self):
        self.hits = 0
        self.misses = 0
        self.stale_evictions = 0
        self.capacity_evictions = 0
        self.dropped_puts = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return (self.hits / total * 100) if total > 0 else 0.0

    def to_dict(self) -> dict:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "stale_evictions": self.stale_evictions,
            "capacity_evictions": self.capacity_evictions,
            "dropped_puts": self.dropped_puts,
            "hit_rate": self.hit_rate,
        }


class ResultCache:
    """
    Thread-safe epoch-stamped LRU cache.

    Example:
        cache = ResultCache()
        key = CacheKey(QueryKind.IMPACT, "CTOKEN@1.0.0")
        cache.put(key, result, epoch=snapshot.epoch)
        entry = cache.get(key, epoch=snapshot.epoch)
    """

    def __init__(self, max_entries: int = 10_000, initial_epoch: int = 0):
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.max_entries = max_entries
        self._epoch = initial_epoch
        self._entries: OrderedDict[CacheKey, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()
        self._stats = CacheStats()

    @property
    def epoch(self) -> int:
        return self._epoch

    def get(self, key: CacheKey, epoch: int | None = None) -> CacheEntry | None:
        """
        Return the entry if it belongs to the current epoch, else None.

        Args:
            key: Cache key
            epoch: Epoch of the caller's snapshot; must also match when given
        """
        with self._lock:
            entry = self._entries.get(key)

            if entry is None:
                self._stats.misses += 1
                return None

            if entry.epoch != self._epoch:
                del self._entries[key]
                self._stats.stale_evictions += 1
                self._stats.misses += 1
                return None

            if epoch is not None and epoch != entry.epoch:
                # reader holds a different snapshot than the cache's current one
                self._stats.misses += 1
                return None

            self._entries.move_to_end(key)
            self._stats.hits += 1
            return entry

    def put(self, key: CacheKey, payload: Any, epoch: int | None = None) -> bool:
        """
        Store a payload stamped with the current epoch.

        A payload computed from another epoch's snapshot is dropped.

        Returns:
            True if stored
        """
        with self._lock:
            if epoch is not None and epoch != self._epoch:
                self._stats.dropped_puts += 1
                return False

            self._entries[key] = CacheEntry(key=key, epoch=self._epoch, payload=payload)
            self._entries.move_to_end(key)

            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)
                self._stats.capacity_evictions += 1

            return True

    def invalidate_all(self) -> int:
        """Advance the epoch; existing entries become stale. Returns the new epoch."""
        with self._lock:
            self._epoch += 1
            new_epoch = self._epoch

        logger.debug("cache_epoch_advanced", epoch=new_epoch)
        return new_epoch

    def sync_epoch(self, epoch: int) -> None:
        """Move the epoch forward to ``epoch`` (used after log replay). Never moves backwards."""
        with self._lock:
            if epoch > self._epoch:
                self._epoch = epoch

    def rebase(self, epoch: int) -> int:
        """
        Drop every entry and set the epoch to ``epoch`` (may move backwards).

        For attaching a cache to a store whose epoch is behind it.

        Returns:
            Number of entries dropped
        """
        with self._lock:
            dropped = len(self._entries)
            self._entries.clear()
            previous, self._epoch = self._epoch, epoch

        logger.warning("cache_epoch_rebased", previous_epoch=previous, epoch=epoch, dropped=dropped)
        return dropped

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> dict:
        """통계 조회"""
        with self._lock:
            return {
                **self._stats.to_dict(),
                "size": len(self._entries),
                "max_entries": self.max_entries,
                "epoch": self._epoch,
            }
