"""Read-through helper shared by the recipe providers.

A provider holds one :class:`CacheAside` bound to its own name.  Keys are a
deterministic function of (provider name, operation, normalised arguments),
so two providers never share an entry and argument casing or surrounding
whitespace does not fragment the cache.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Awaitable, Callable, TypeVar

import structlog

from src.interfaces.cache_provider import ICacheProvider

_T = TypeVar("_T")

logger = structlog.get_logger(logger_name=__name__)


@dataclass(frozen=True)
class CacheTTLs:
    """Time-to-live per data volatility class."""

    catalog: timedelta = timedelta(days=30)  # category / cuisine / ingredient lists
    recipe: timedelta = timedelta(days=7)  # single recipe lookups
    search: timedelta = timedelta(days=1)  # search and filter results


def normalize_key_part(part: Any) -> str:
    return str(part).strip().lower()


class CacheAside:
    """Cache-aside wrapper around an :class:`ICacheProvider`.

    Parameters
    ----------
    cache:
        Backend the entries are written to.
    namespace:
        Provider name used as the key prefix.
    """

    def __init__(self, cache: ICacheProvider, namespace: str) -> None:
        self._cache = cache
        self._namespace = namespace

    @property
    def cache(self) -> ICacheProvider:
        return self._cache

    def key(self, operation: str, *args: Any) -> str:
        """Build the cache key for *operation* called with *args*."""
        parts = [self._namespace, operation, *(normalize_key_part(a) for a in args)]
        return ":".join(parts)

    async def fetch(
        self,
        key: str,
        loader: Callable[[], Awaitable[_T]],
        ttl: timedelta,
        value_type: Any,
    ) -> _T:
        """Return the cached value for *key*, or load, store and return it.

        ``None`` results are returned but never stored, so a lookup that
        found nothing is retried on the next access.  Exceptions raised by
        *loader* propagate and nothing is written.
        """
        cached = await self._cache.get(key, value_type)
        if cached is not None:
            return cached

        value = await loader()
        if value is not None:
            await self._cache.set(key, value, ttl)
        else:
            logger.debug("cache_aside_skip_none", key=key)
        return value

    async def store(self, key: str, value: Any, ttl: timedelta) -> None:
        """Write *value* directly, e.g. to warm per-recipe entries."""
        await self._cache.set(key, value, ttl)
