"""
Keyed in-process cache with per-entry TTL expiry and LRU eviction.
Sits in front of every external data provider.
"""

from collections import OrderedDict
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional
import asyncio
import logging
import time

from passport.config import settings

logger = logging.getLogger(__name__)


class CacheEntry:
    """A cached payload and its bookkeeping."""

    __slots__ = ("value", "created_at", "expires_at", "hits")

    def __init__(self, value: Any, created_at: float, expires_at: float):
        self.value = value
        self.created_at = created_at
        self.expires_at = expires_at
        self.hits = 0

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    @property
    def expires_at_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.expires_at, tz=timezone.utc)


class CacheManager:
    """
    LRU cache whose entries also expire after their own TTL.

    Reads never return an expired entry; expired entries are dropped lazily on
    access and eagerly by `cleanup()`. When the cache is full the least
    recently used entry is evicted to make room.
    """

    def __init__(
        self,
        max_size: int = settings.cache_max_size,
        default_ttl: int = settings.cache_default_ttl,
        clock: Callable[[], float] = time.time,
    ):
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self.max_size = max_size
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = asyncio.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    @staticmethod
    def generate_cache_key(prefix: str, params: Dict[str, Any]) -> str:
        """
        Build a deterministic key from request parameters.

        Parameters are sorted by name and None values are skipped, so two
        requests with the same fields in a different order share a key.
        """
        parts = [f"{key}:{value}" for key, value in sorted(params.items()) if value is not None]
        return f"{prefix}:{'|'.join(parts)}"

    async def get_entry(self, key: str) -> Optional[CacheEntry]:
        """Return the live entry for `key`, refreshing its LRU position."""
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            if entry.is_expired(self._clock()):
                del self._entries[key]
                self._expirations += 1
                self._misses += 1
                return None

            self._entries.move_to_end(key)
            entry.hits += 1
            self._hits += 1
            return entry

    async def get(self, key: str) -> Optional[Any]:
        entry = await self.get_entry(key)
        return entry.value if entry else None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> CacheEntry:
        """Store `value` under `key` for `ttl` seconds."""
        ttl = self.default_ttl if ttl is None else ttl
        if ttl <= 0:
            raise ValueError("ttl must be positive")

        now = self._clock()
        entry = CacheEntry(value, created_at=now, expires_at=now + ttl)

        async with self._lock:
            if key in self._entries:
                del self._entries[key]
            elif len(self._entries) >= self.max_size:
                self._evict(now)
            self._entries[key] = entry

        logger.debug(f"Cached {key} for {ttl}s")
        return entry

    async def exists(self, key: str) -> bool:
        async with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not entry.is_expired(self._clock())

    async def get_info(self, key: str) -> Optional[Dict[str, Any]]:
        """Metadata for a live entry without counting it as a hit."""
        async with self._lock:
            entry = self._entries.get(key)
            now = self._clock()
            if entry is None or entry.is_expired(now):
                return None
            return {
                "key": key,
                "created_at": datetime.fromtimestamp(entry.created_at, tz=timezone.utc),
                "expires_at": entry.expires_at_datetime,
                "age_seconds": now - entry.created_at,
                "ttl_remaining": entry.expires_at - now,
                "hits": entry.hits,
            }

    async def invalidate(self, key: str) -> bool:
        async with self._lock:
            return self._entries.pop(key, None) is not None

    async def clear_provider(self, provider: str) -> int:
        """Drop every entry whose key starts with `provider:`."""
        prefix = f"{provider}:"
        async with self._lock:
            keys = [key for key in self._entries if key.startswith(prefix)]
            for key in keys:
                del self._entries[key]
        logger.info(f"Cleared {len(keys)} cache entries for {provider}")
        return len(keys)

    async def clear_all(self) -> int:
        async with self._lock:
            count = len(self._entries)
            self._entries.clear()
        return count

    async def cleanup(self) -> int:
        """Remove expired entries. Returns the number removed."""
        now = self._clock()
        async with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]
            self._expirations += len(expired)
        if expired:
            logger.debug(f"Cache cleanup removed {len(expired)} expired entries")
        return len(expired)

    async def get_or_set(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]],
        ttl: Optional[int] = None,
    ) -> Any:
        """Return the cached value, or await `factory()` and cache its result."""
        entry = await self.get_entry(key)
        if entry is not None:
            return entry.value
        value = await factory()
        await self.set(key, value, ttl)
        return value

    async def batch_get(self, keys: Iterable[str]) -> Dict[str, Any]:
        """Live values for the requested keys; missing keys are omitted."""
        results = {}
        for key in keys:
            entry = await self.get_entry(key)
            if entry is not None:
                results[key] = entry.value
        return results

    def get_stats(self) -> Dict[str, Any]:
        lookups = self._hits + self._misses
        return {
            "size": len(self._entries),
            "max_size": self.max_size,
            "hits": self._hits,
            "misses": self._misses,
            "evictions": self._evictions,
            "expirations": self._expirations,
            "hit_rate": round(self._hits / lookups, 4) if lookups else 0.0,
        }

    def keys(self) -> List[str]:
        return list(self._entries.keys())

    def _evict(self, now: float) -> None:
        """Make room for one entry, preferring an expired one over the LRU entry."""
        for key, entry in self._entries.items():
            if entry.is_expired(now):
                del self._entries[key]
                self._expirations += 1
                return
        key, _ = self._entries.popitem(last=False)
        self._evictions += 1
        logger.debug(f"Evicted least recently used cache entry {key}")


_cache_manager: Optional[CacheManager] = None


def get_cache_manager() -> CacheManager:
    """Process-wide cache shared by all endpoints."""
    global _cache_manager
    if _cache_manager is None:
        _cache_manager = CacheManager()
    return _cache_manager
