"""In-memory cache provider with per-entry expiry.

Entries live in a ``cachetools.LRUCache`` guarded by a lock, so the cache can
be shared by concurrent coroutines and worker threads without any locking on
the caller's side.  Expiry is checked lazily on ``get`` / ``exists``; the
volatile store is bounded by process lifetime and ``max_size``, so it has no
bulk sweep.
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Any, Callable

import structlog
from cachetools import LRUCache

from src.interfaces.cache_provider import TTL, ICacheProvider, ttl_to_timedelta
from src.models.cache import CacheEntry
from src.utils.serialization import decode_value, encode_value

logger = structlog.get_logger(logger_name=__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MemoryCacheProvider(ICacheProvider):
    """Volatile, thread-safe cache backed by ``cachetools.LRUCache``.

    Parameters
    ----------
    max_size:
        Maximum number of entries before the least-recently-used entry
        is evicted.
    clock:
        Returns the current UTC time.  Injected by tests.
    """

    def __init__(
        self,
        max_size: int = 10_000,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._entries: LRUCache[str, CacheEntry] = LRUCache(maxsize=max_size)
        self._lock = threading.Lock()
        self._clock = clock

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _live_entry(self, key: str) -> CacheEntry | None:
        """Return the unexpired entry for *key*, evicting it if expired."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(now):
                del self._entries[key]
                logger.debug("cache_expired", key=key, backend=self.get_provider_name())
                return None
            return entry

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    async def get(self, key: str, value_type: Any = None) -> Any | None:
        """Retrieve the cached value for *key*, or ``None`` if missing/expired."""
        entry = self._live_entry(key)
        if entry is None:
            logger.debug("cache_miss", key=key)
            return None
        logger.debug("cache_hit", key=key)
        return decode_value(entry.serialized_value, value_type, key=key)

    async def set(self, key: str, value: Any, ttl: TTL = None) -> None:
        """Store *value* under *key*, overwriting any existing entry."""
        payload = encode_value(value)
        delta = ttl_to_timedelta(ttl)
        expires_at = self._clock() + delta if delta is not None else None
        entry = CacheEntry(key=key, serialized_value=payload, expires_at=expires_at)
        with self._lock:
            self._entries[key] = entry
        logger.debug("cache_set", key=key, expires_at=expires_at)

    async def remove(self, key: str) -> bool:
        """Remove *key* from the cache; return whether it was present."""
        with self._lock:
            removed = self._entries.pop(key, None) is not None
        logger.debug("cache_remove", key=key, removed=removed)
        return removed

    async def exists(self, key: str) -> bool:
        """Return ``True`` if *key* is present and not expired."""
        return self._live_entry(key) is not None

    async def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.info("cache_cleared", backend=self.get_provider_name())

    def get_provider_name(self) -> str:
        return "memory"

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
