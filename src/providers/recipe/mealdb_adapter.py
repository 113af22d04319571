"""Adapter exposing :class:`MealDbClient` as an :class:`IRecipeProvider`.

TheMealDB has no per-key daily budget, so the adapter reports a fixed
nominal quota and treats usage increments as no-ops.  It therefore never
becomes exhausted and serves as the last-resort fallback in the aggregation
order.

The adapter also adds what the legacy client lacks: cache-aside lookups,
result limits (applied after the fetch, since TheMealDB cannot limit
server-side) and TheMealDB's "area" vocabulary mapped onto "cuisine".
"""

from __future__ import annotations

from typing import Awaitable, Callable

from src.interfaces.cache_provider import ICacheProvider
from src.interfaces.recipe_provider import IRecipeProvider
from src.models.quota import ProviderQuota
from src.models.recipe import Category, Recipe
from src.providers.recipe.cache_aside import CacheAside, CacheTTLs
from src.providers.recipe.mealdb_client import SOURCE_NAME, MealDbClient
from src.utils.logging import get_logger

_NOMINAL_QUOTA = 1000


class MealDbAdapter(IRecipeProvider):
    """Uniform recipe provider over TheMealDB.

    Parameters
    ----------
    client:
        The wrapped TheMealDB client.
    cache:
        Backend for cache-aside lookups.
    nominal_quota:
        Constant value reported as both the daily quota and the remaining
        calls.
    """

    def __init__(
        self,
        client: MealDbClient,
        cache: ICacheProvider,
        *,
        nominal_quota: int = _NOMINAL_QUOTA,
        ttls: CacheTTLs | None = None,
    ) -> None:
        self._client = client
        self._cache = CacheAside(cache, SOURCE_NAME)
        self._ttls = ttls or CacheTTLs()
        # Never incremented: TheMealDB reports zero usage.
        self._quota = ProviderQuota(SOURCE_NAME, nominal_quota)
        self._logger = get_logger(__name__)

    async def _warm(self, recipes: list[Recipe]) -> None:
        for recipe in recipes:
            await self._cache.store(
                self._cache.key("recipe", recipe.id), recipe, self._ttls.recipe
            )

    async def _cached_list(
        self,
        operation: str,
        argument: str,
        loader: Callable[[str], Awaitable[list[Recipe]]],
        limit: int,
    ) -> list[Recipe]:
        """Fetch the full list through the search cache, then apply *limit*."""

        async def _load() -> list[Recipe]:
            recipes = await loader(argument)
            await self._warm(recipes)
            return recipes

        key = self._cache.key(operation, argument)
        recipes = await self._cache.fetch(key, _load, self._ttls.search, list[Recipe])
        return recipes[:limit] if limit > 0 else []

    # -- IRecipeProvider: identity and quota -----------------------------------

    def get_provider_name(self) -> str:
        return SOURCE_NAME

    @property
    def daily_quota(self) -> int:
        return self._quota.daily_limit

    @property
    def quota(self) -> ProviderQuota:
        return self._quota

    def get_remaining_calls(self) -> int:
        return self._quota.daily_limit

    def increment_api_usage(self, count: int = 1) -> None:
        """No-op: TheMealDB has no usage counter."""

    def reset_daily_counter(self) -> None:
        """No-op: TheMealDB has no usage counter."""

    # -- IRecipeSource ---------------------------------------------------------

    async def get_recipe_by_id(self, recipe_id: int) -> Recipe | None:
        return await self._cache.fetch(
            self._cache.key("recipe", recipe_id),
            lambda: self._client.get_recipe_by_id(recipe_id),
            self._ttls.recipe,
            Recipe,
        )

    async def search_recipes_by_name(self, name: str, limit: int = 10) -> list[Recipe]:
        if not name.strip():
            return []
        return await self._cached_list(
            "search", name.strip(), self._client.search_recipes_by_name, limit
        )

    async def get_random_recipes(self, count: int) -> list[Recipe]:
        if count <= 0:
            return []
        recipes = await self._client.get_random_recipes(count)
        await self._warm(recipes)
        self._logger.info("mealdb_random_complete", requested=count, returned=len(recipes))
        return recipes

    async def get_categories(self) -> list[Category]:
        return await self._cache.fetch(
            self._cache.key("categories"),
            self._client.get_categories,
            self._ttls.catalog,
            list[Category],
        )

    async def get_recipes_by_category(self, category: str, limit: int = 20) -> list[Recipe]:
        if not category.strip():
            return []
        return await self._cached_list(
            "category", category.strip(), self._client.get_recipes_by_category, limit
        )

    async def get_cuisines(self) -> list[str]:
        return await self._cache.fetch(
            self._cache.key("cuisines"),
            self._client.get_areas,
            self._ttls.catalog,
            list[str],
        )

    async def get_recipes_by_cuisine(self, cuisine: str, limit: int = 20) -> list[Recipe]:
        if not cuisine.strip():
            return []
        return await self._cached_list(
            "cuisine", cuisine.strip(), self._client.get_recipes_by_area, limit
        )

    async def get_ingredients(self) -> list[str]:
        return await self._cache.fetch(
            self._cache.key("ingredients"),
            self._client.get_ingredients,
            self._ttls.catalog,
            list[str],
        )

    async def get_recipes_by_ingredient(self, ingredient: str, limit: int = 20) -> list[Recipe]:
        if not ingredient.strip():
            return []
        return await self._cached_list(
            "ingredient", ingredient.strip(), self._client.get_recipes_by_ingredient, limit
        )
