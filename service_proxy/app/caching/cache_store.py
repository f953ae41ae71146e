"""
Dual-horizon in-memory cache.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from shared.logging import get_logger


@dataclass
class CacheEntry:
    """A cached payload and the moment it was stored."""
    value: Any
    stored_at: float

    def age(self, now: float) -> float:
        return now - self.stored_at


class CacheStore:
    """Fresh and stale stores keyed by the same cache key.

    An entry is valid exactly while ``now - stored_at < ttl`` for its
    store. Expired entries read as absent; they are dropped on that read
    and otherwise overwritten by the next ``put``.
    """

    def __init__(self,
                 fresh_ttl: float = 30.0,
                 stale_ttl: float = 300.0,
                 clock: Callable[[], float] = time.monotonic):
        self.fresh_ttl = fresh_ttl
        self.stale_ttl = stale_ttl
        self.logger = get_logger("proxy.cache_store")
        self._clock = clock
        self._fresh: Dict[str, CacheEntry] = {}
        self._stale: Dict[str, CacheEntry] = {}

    def _lookup(self, store: Dict[str, CacheEntry], key: str, ttl: float) -> Optional[Any]:
        entry = store.get(key)
        if entry is None:
            return None
        if entry.age(self._clock()) >= ttl:
            del store[key]
            return None
        return entry.value

    def get_fresh(self, key: str) -> Optional[Any]:
        return self._lookup(self._fresh, key, self.fresh_ttl)

    def get_stale(self, key: str) -> Optional[Any]:
        return self._lookup(self._stale, key, self.stale_ttl)

    def put(self, key: str, value: Any) -> None:
        """Write ``value`` into both stores with the current timestamp."""
        now = self._clock()
        self._fresh[key] = CacheEntry(value=value, stored_at=now)
        self._stale[key] = CacheEntry(value=value, stored_at=now)

    def invalidate(self, key: str) -> bool:
        """Drop the fresh entry only; the stale fallback is kept.

        Returns:
            True if a fresh entry was removed
        """
        removed = self._fresh.pop(key, None) is not None
        if removed:
            self.logger.info("Invalidated fresh cache entry", cache_key=key)
        return removed

    def stats(self) -> Dict[str, Any]:
        """Entry counts, for the status endpoint."""
        return {
            "fresh_entries": len(self._fresh),
            "stale_entries": len(self._stale),
            "fresh_ttl_seconds": self.fresh_ttl,
            "stale_ttl_seconds": self.stale_ttl,
        }
