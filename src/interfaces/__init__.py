"""Public interface definitions for caches, recipe providers and quota stores.

Business logic talks to external services only through the abstract base
classes in this package.  Concrete adapters live in ``src/providers/`` and
are wired together in ``src/main.py``.

CONCRETE PROVIDER MAP:
    Interface            →  Concrete implementations (in src/providers/)
    ─────────────────────────────────────────────────────────────────
    ICacheProvider       →  MemoryCacheProvider, SQLiteCacheProvider
    IRecipeProvider      →  SpoonacularProvider, MealDbAdapter
    IQuotaStore          →  SQLiteQuotaStore

``IRecipeSource`` is the query surface shared by single providers and the
aggregation service.
"""

from src.interfaces.cache_provider import ICacheProvider
from src.interfaces.quota_store import IQuotaStore
from src.interfaces.recipe_provider import IRecipeProvider, IRecipeSource

__all__ = [
    "ICacheProvider",
    "IQuotaStore",
    "IRecipeProvider",
    "IRecipeSource",
]
