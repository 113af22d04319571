"""Cache providers.

MemoryCacheProvider is a bounded in-process LRU cache: fast, but lost on
restart and not shared across processes.  SQLiteCacheProvider persists
entries to a local database file so cached recipes survive restarts.
Both implement ICacheProvider, so the backend is chosen in configuration
without touching any provider code.
"""

from src.providers.cache.memory_cache import MemoryCacheProvider
from src.providers.cache.sqlite_cache import SQLiteCacheProvider

__all__ = ["MemoryCacheProvider", "SQLiteCacheProvider"]
