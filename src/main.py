"""RecipeHub composition root.

Wires together the cache backend, the shared HTTP client, the recipe
providers, the quota store and the aggregation service from a
:class:`Settings` instance.  There are no module-level singletons: callers
build one :class:`RecipeHub`, pass it around explicitly, and close it on
shutdown.

Typical usage::

    async with build_recipe_hub(Settings()) as hub:
        recipes = await hub.service.search_recipes_by_name("curry")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from types import TracebackType

import httpx
import structlog

from src.config.settings import Settings
from src.interfaces.cache_provider import ICacheProvider
from src.interfaces.recipe_provider import IRecipeProvider
from src.providers.cache.memory_cache import MemoryCacheProvider
from src.providers.cache.sqlite_cache import SQLiteCacheProvider
from src.providers.quota.sqlite_quota_store import SQLiteQuotaStore
from src.providers.recipe.cache_aside import CacheTTLs
from src.providers.recipe.mealdb_adapter import MealDbAdapter
from src.providers.recipe.mealdb_client import MealDbClient
from src.providers.recipe.spoonacular_provider import SpoonacularProvider
from src.services.recipe_aggregator import AggregateRecipeService
from src.utils.errors import ConfigurationError
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

_CACHE_BACKENDS = ("sqlite", "memory")
_PROVIDER_NAMES = ("spoonacular", "themealdb")


@dataclass
class RecipeHub:
    """Long-lived application container.

    Call :meth:`initialize` once after construction (or use ``async with``)
    and :meth:`aclose` on shutdown.
    """

    settings: Settings
    http_client: httpx.AsyncClient
    cache: ICacheProvider
    quota_store: SQLiteQuotaStore
    service: AggregateRecipeService
    providers: list[IRecipeProvider] = field(default_factory=list)

    async def initialize(self) -> None:
        """Create database tables and restore persisted quota usage."""
        if isinstance(self.cache, SQLiteCacheProvider):
            await self.cache.initialize()
        await self.quota_store.initialize()
        await self.service.load_quota_state()
        _logger.info(
            "recipe_hub_ready",
            cache=self.cache.get_provider_name(),
            providers=self.service.get_provider_priority(),
        )

    async def aclose(self) -> None:
        """Persist quota usage, sweep the durable cache, close the HTTP client."""
        try:
            await self.service.persist_quota_state()
            if isinstance(self.cache, SQLiteCacheProvider):
                await self.cache.sweep_expired()
        finally:
            await self.http_client.aclose()
        _logger.info("recipe_hub_closed")

    async def __aenter__(self) -> RecipeHub:
        await self.initialize()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()


def _build_cache(app_settings: Settings) -> ICacheProvider:
    """Select the cache backend named by ``CACHE_BACKEND``."""
    backend = app_settings.cache_backend.strip().lower()
    if backend == "sqlite":
        return SQLiteCacheProvider(db_path=app_settings.cache_db_path)
    if backend == "memory":
        return MemoryCacheProvider(max_size=app_settings.memory_cache_max_size)
    raise ConfigurationError(
        f"Unknown cache backend {app_settings.cache_backend!r}; "
        f"expected one of {', '.join(_CACHE_BACKENDS)}"
    )


def _build_ttls(app_settings: Settings) -> CacheTTLs:
    return CacheTTLs(
        catalog=timedelta(seconds=app_settings.catalog_cache_ttl),
        recipe=timedelta(seconds=app_settings.recipe_cache_ttl),
        search=timedelta(seconds=app_settings.search_cache_ttl),
    )


def _check_provider_order(app_settings: Settings) -> list[str]:
    """Validate ``PROVIDER_ORDER`` and return the usable provider names."""
    unknown = [n for n in app_settings.provider_order if n not in _PROVIDER_NAMES]
    if unknown:
        raise ConfigurationError(
            f"Unknown recipe provider(s) {', '.join(unknown)}; "
            f"expected names from {', '.join(_PROVIDER_NAMES)}"
        )
    if len(set(app_settings.provider_order)) != len(app_settings.provider_order):
        raise ConfigurationError(
            f"PROVIDER_ORDER lists a provider twice: {app_settings.provider_order}"
        )
    available = app_settings.get_available_providers()
    if not available:
        raise ConfigurationError(
            "No recipe provider is available; check PROVIDER_ORDER and SPOONACULAR_API_KEY"
        )
    return available


def _build_providers(
    app_settings: Settings,
    http_client: httpx.AsyncClient,
    cache: ICacheProvider,
) -> list[IRecipeProvider]:
    """Instantiate the configured providers in fallback order.

    Spoonacular is skipped when no API key is configured; TheMealDB needs
    none.
    """
    ttls = _build_ttls(app_settings)
    providers: list[IRecipeProvider] = []
    for name in _check_provider_order(app_settings):
        if name == "spoonacular":
            providers.append(
                SpoonacularProvider(
                    http_client,
                    cache,
                    app_settings.spoonacular_api_key,
                    base_url=app_settings.spoonacular_base_url,
                    daily_quota=app_settings.spoonacular_daily_quota,
                    min_request_interval=app_settings.spoonacular_min_request_interval,
                    call_timeout=app_settings.provider_call_timeout,
                    ttls=ttls,
                )
            )
        elif name == "themealdb":
            client = MealDbClient(
                http_client,
                base_url=app_settings.mealdb_base_url,
                api_key=app_settings.mealdb_api_key,
                call_timeout=app_settings.provider_call_timeout,
                detail_concurrency=app_settings.mealdb_detail_concurrency,
            )
            providers.append(
                MealDbAdapter(
                    client,
                    cache,
                    nominal_quota=app_settings.mealdb_nominal_quota,
                    ttls=ttls,
                )
            )

    return providers


def build_recipe_hub(
    app_settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> RecipeHub:
    """Construct every component from *app_settings*.

    Parameters
    ----------
    app_settings:
        Application settings.  A fresh :class:`Settings` (environment and
        ``.env``) is used when omitted.
    http_client:
        Optional pre-built client, e.g. with a mock transport in tests.
        The hub takes ownership and closes it in :meth:`RecipeHub.aclose`.

    Raises
    ------
    ConfigurationError
        If the cache backend or a provider name is unknown, or no
        provider is available.
    """
    s = app_settings or Settings()
    cache = _build_cache(s)
    _check_provider_order(s)
    client = http_client or httpx.AsyncClient(timeout=s.http_timeout)
    providers = _build_providers(s, client, cache)
    quota_store = SQLiteQuotaStore(db_path=s.quota_db_path)
    service = AggregateRecipeService(providers, quota_store=quota_store)

    _logger.info(
        "recipe_hub_built",
        cache_backend=cache.get_provider_name(),
        providers=service.get_provider_priority(),
    )
    return RecipeHub(
        settings=s,
        http_client=client,
        cache=cache,
        quota_store=quota_store,
        service=service,
        providers=providers,
    )
