"""
Result caching for executed cell sets.

This module provides a thread-safe in-process cache keyed by the integer
fingerprint of a query request. Entries are replaced on every put (last
write wins) and may disappear at any moment through eviction, expiry or a
full clear, so callers must treat a failed ``get`` as a miss.
"""

import threading
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .cellset import CellSet


class CacheEntry(BaseModel):
    """A single cache entry."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    cache_key: int
    cell_set: CellSet
    created_at: datetime
    accessed_at: datetime
    access_count: int = 0
    ttl_seconds: int | None = None

    def is_expired(self) -> bool:
        """Check if cache entry has expired."""
        if self.ttl_seconds is None:
            return False

        expiry_time = self.created_at + timedelta(seconds=self.ttl_seconds)
        return datetime.now() > expiry_time

    def update_access(self) -> None:
        """Update access statistics."""
        self.accessed_at = datetime.now()
        self.access_count += 1


class CacheConfig(BaseModel):
    """Configuration for the result cache."""

    max_entries: int = Field(
        default=1000, gt=0, description="Maximum number of cache entries"
    )
    ttl_seconds: int | None = Field(
        default=None, gt=0, description="Entry time-to-live; None keeps entries"
    )
    lru_eviction_ratio: float = Field(
        default=0.1, gt=0, le=1, description="Share of entries evicted when full"
    )

    @model_validator(mode="after")
    def validate_cache_config(self) -> "CacheConfig":
        """Validate the entire cache configuration."""
        if self.ttl_seconds is not None and self.ttl_seconds > 86400 * 7:
            raise ValueError("TTL cannot exceed 7 days")
        return self


class ResultCache:
    """
    Thread-safe cell set cache with LRU eviction.

    Safe for concurrent point reads, point writes and full clears from any
    number of threads or tasks.
    """

    def __init__(self, config: CacheConfig | None = None):
        """Initialize result cache with configuration."""
        self.config = config or CacheConfig()
        self._cache: OrderedDict[int, CacheEntry] = OrderedDict()
        self._lock = threading.RLock()

        self._hit_count = 0
        self._miss_count = 0
        self._eviction_count = 0

    def contains_key(self, cache_key: int) -> bool:
        """Check whether a live entry exists for the key."""
        with self._lock:
            entry = self._cache.get(cache_key)
            if entry is None:
                return False
            if entry.is_expired():
                self._remove_entry(cache_key)
                return False
            return True

    def get(self, cache_key: int) -> CellSet | None:
        """
        Get a cached cell set.

        Args:
            cache_key: Request fingerprint

        Returns:
            CellSet if cached and not expired, None otherwise
        """
        with self._lock:
            entry = self._cache.get(cache_key)
            if entry is None:
                self._miss_count += 1
                return None

            if entry.is_expired():
                self._remove_entry(cache_key)
                self._miss_count += 1
                return None

            entry.update_access()
            self._cache.move_to_end(cache_key)
            self._hit_count += 1
            return entry.cell_set

    def put(self, cache_key: int, cell_set: CellSet) -> None:
        """
        Store a cell set, replacing any existing entry for the key.

        Args:
            cache_key: Request fingerprint
            cell_set: Executed result
        """
        now = datetime.now()
        entry = CacheEntry(
            cache_key=cache_key,
            cell_set=cell_set,
            created_at=now,
            accessed_at=now,
            ttl_seconds=self.config.ttl_seconds,
        )

        with self._lock:
            if cache_key in self._cache:
                self._remove_entry(cache_key)
            elif len(self._cache) >= self.config.max_entries:
                self._evict_entries()

            self._cache[cache_key] = entry

    def invalidate(self, cache_key: int) -> bool:
        """
        Invalidate a single entry.

        Returns:
            bool: True if entry was removed, False if not found
        """
        with self._lock:
            if cache_key in self._cache:
                self._remove_entry(cache_key)
                return True
            return False

    def clear(self) -> None:
        """Clear all cached entries."""
        with self._lock:
            self._cache.clear()

    def _evict_entries(self) -> None:
        """Evict expired entries, then least recently used ones."""
        expired = [key for key, entry in self._cache.items() if entry.is_expired()]
        for key in expired:
            self._remove_entry(key)
            self._eviction_count += 1

        if len(self._cache) < self.config.max_entries:
            return

        num_to_evict = max(1, int(len(self._cache) * self.config.lru_eviction_ratio))
        for _ in range(num_to_evict):
            self._cache.popitem(last=False)
            self._eviction_count += 1

    def _remove_entry(self, cache_key: int) -> None:
        self._cache.pop(cache_key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics (thread-safe)."""
        with self._lock:
            total_requests = self._hit_count + self._miss_count
            hit_ratio = (
                (self._hit_count / total_requests) if total_requests > 0 else 0.0
            )
            return {
                "total_entries": len(self._cache),
                "max_entries": self.config.max_entries,
                "ttl_seconds": self.config.ttl_seconds,
                "hit_count": self._hit_count,
                "miss_count": self._miss_count,
                "hit_ratio": round(hit_ratio, 4),
                "eviction_count": self._eviction_count,
                "entry_utilization": round(
                    len(self._cache) / self.config.max_entries, 4
                ),
            }
