"""
Simple in-memory cache used in front of read paths that hit the database.

Callers receive a CachePort so tests can inject their own clock or backend.
Entries expire after a TTL, and writers are expected to call invalidate()
for every key their mutation affects.
"""

import time
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


class CachePort(ABC):
    """Contract for the caches injected into services."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None when missing or expired."""

    @abstractmethod
    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Store a value for ttl seconds."""

    @abstractmethod
    def invalidate(self, key: Optional[str] = None) -> int:
        """Drop one key, or everything when key is None. Returns entries removed."""


class TTLCache(CachePort):
    """Dictionary-backed cache with per-entry expiry."""

    def __init__(self, default_ttl: int = 300, clock: Callable[[], float] = time.time):
        self.default_ttl = default_ttl
        self._clock = clock
        self._cache: Dict[str, Dict[str, Any]] = {}

    def get(self, key: str) -> Optional[Any]:
        """Get a value from cache if it exists and hasn't expired."""
        if key in self._cache:
            entry = self._cache[key]
            if self._clock() < entry["expires_at"]:
                logger.debug(f"Cache HIT for key: {key}")
                return entry["value"]
            else:
                # Expired, remove it
                del self._cache[key]
                logger.debug(f"Cache EXPIRED for key: {key}")
        return None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Store a value in cache with TTL in seconds."""
        ttl = self.default_ttl if ttl is None else ttl
        now = self._clock()
        self._cache[key] = {
            "value": value,
            "expires_at": now + ttl,
            "created_at": now,
        }
        logger.debug(f"Cache SET for key: {key} (TTL: {ttl}s)")

    def invalidate(self, key: Optional[str] = None) -> int:
        """Clear one entry, or all entries when no key is given."""
        if key is None:
            count = len(self._cache)
            self._cache = {}
            logger.debug(f"Cache CLEARED ({count} entries)")
            return count
        if key in self._cache:
            del self._cache[key]
            logger.debug(f"Cache INVALIDATE for key: {key}")
            return 1
        return 0

    def __len__(self) -> int:
        return len(self._cache)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        now = self._clock()
        active_entries = sum(1 for v in self._cache.values() if now < v["expires_at"])

        return {
            "total_entries": len(self._cache),
            "active_entries": active_entries,
            "expired_entries": len(self._cache) - active_entries,
            "cache_keys": list(self._cache.keys())[:10],  # First 10 keys for debugging
        }
