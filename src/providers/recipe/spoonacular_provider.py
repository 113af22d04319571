"""Spoonacular REST API recipe provider.

Implements :class:`IRecipeProvider` over ``https://api.spoonacular.com/``
with the API key passed as the ``apiKey`` query parameter.  The free plan
allows 150 calls per day, tracked by the provider's :class:`ProviderQuota`.

Spoonacular has no endpoints for categories, cuisines or ingredients, so
those catalogues are fixed lists served without an external call.  Search
results carry full recipe information (``addRecipeInformation=true``) and
warm the per-recipe cache; random results are never served from cache but
warm it too.  Ingredient search returns partial records, so each hit is
resolved through :meth:`SpoonacularProvider.get_recipe_by_id`.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Any

import httpx

from src.interfaces.cache_provider import ICacheProvider
from src.interfaces.recipe_provider import IRecipeProvider
from src.models.quota import ProviderQuota
from src.models.recipe import Category, Ingredient, Recipe
from src.providers.recipe.cache_aside import CacheAside, CacheTTLs
from src.providers.recipe.http_fetcher import JsonFetcher
from src.utils.concurrency import throttled_gather
from src.utils.errors import ProviderError
from src.utils.logging import get_logger

PROVIDER_NAME = "spoonacular"
_BASE_URL = "https://api.spoonacular.com/"
_DAILY_QUOTA = 150
_DETAIL_CONCURRENCY = 4

_HTML_TAG_RE = re.compile(r"<.*?>")

_CATEGORIES: tuple[Category, ...] = (
    Category(id=1, name="Main Course", description="Main dishes",
             thumbnail="https://spoonacular.com/recipeImages/main-course.jpg"),
    Category(id=2, name="Side Dish", description="Side dishes",
             thumbnail="https://spoonacular.com/recipeImages/side-dish.jpg"),
    Category(id=3, name="Dessert", description="Sweet dishes served after the main course",
             thumbnail="https://spoonacular.com/recipeImages/dessert.jpg"),
    Category(id=4, name="Appetizer", description="Small dishes served before the main course",
             thumbnail="https://spoonacular.com/recipeImages/appetizer.jpg"),
    Category(id=5, name="Salad", description="Dishes with mixed vegetables, often served cold",
             thumbnail="https://spoonacular.com/recipeImages/salad.jpg"),
    Category(id=6, name="Bread", description="Bread and bread-based dishes",
             thumbnail="https://spoonacular.com/recipeImages/bread.jpg"),
    Category(id=7, name="Breakfast", description="Morning meals",
             thumbnail="https://spoonacular.com/recipeImages/breakfast.jpg"),
    Category(id=8, name="Soup", description="Liquid food typically made by boiling ingredients",
             thumbnail="https://spoonacular.com/recipeImages/soup.jpg"),
    Category(id=9, name="Beverage", description="Drinks of various types",
             thumbnail="https://spoonacular.com/recipeImages/beverage.jpg"),
    Category(id=10, name="Sauce", description="Condiments to accompany other dishes",
             thumbnail="https://spoonacular.com/recipeImages/sauce.jpg"),
    Category(id=11, name="Drink", description="Alcoholic and non-alcoholic drinks",
             thumbnail="https://spoonacular.com/recipeImages/drink.jpg"),
)

_CUISINES: tuple[str, ...] = (
    "African", "American", "British", "Cajun", "Caribbean", "Chinese",
    "Eastern European", "European", "French", "German", "Greek", "Indian",
    "Irish", "Italian", "Japanese", "Jewish", "Korean", "Latin American",
    "Mediterranean", "Mexican", "Middle Eastern", "Nordic", "Southern",
    "Spanish", "Thai", "Vietnamese",
)

_INGREDIENTS: tuple[str, ...] = (
    "chicken", "beef", "pork", "fish", "shrimp", "tofu", "eggs", "milk",
    "cheese", "butter", "flour", "sugar", "salt", "pepper", "olive oil",
    "garlic", "onion", "tomato", "potato", "carrot", "broccoli", "spinach",
    "rice", "pasta", "bread", "apple", "banana", "orange", "lemon",
    "strawberry", "blueberry", "chocolate", "vanilla", "cinnamon", "mint",
    "basil", "oregano", "thyme", "rosemary",
)

# Boolean recipe flags surfaced as tags.
_FLAG_TAGS: tuple[tuple[str, str], ...] = (
    ("vegetarian", "Vegetarian"),
    ("vegan", "Vegan"),
    ("glutenFree", "Gluten-Free"),
    ("dairyFree", "Dairy-Free"),
    ("veryHealthy", "Healthy"),
)


def _format_amount(amount: float) -> str:
    """Render an ingredient amount without trailing zeros (``2``, ``0.5``, ``1.33``)."""
    if float(amount).is_integer():
        return str(int(amount))
    return f"{amount:.2f}".rstrip("0").rstrip(".")


def _require_object(data: Any, what: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise TypeError(f"{what} must be an object, got {type(data).__name__}")
    return data


def _convert_ingredient(data: dict[str, Any]) -> Ingredient:
    data = _require_object(data, "ingredient")
    amount = data.get("amount") or 0
    unit = data.get("unit") or ""
    measure = ""
    if amount > 0:
        formatted = _format_amount(amount)
        measure = f"{formatted} {unit}" if unit else formatted
    name = data.get("name") or data.get("originalName") or ""
    return Ingredient(name=name, measure=measure)


def convert_recipe(data: dict[str, Any]) -> Recipe:
    """Map a Spoonacular recipe-information payload onto :class:`Recipe`.

    Raises ``TypeError``, ``KeyError`` or ``ValueError`` when *data* does
    not have the shape of a recipe object.
    """
    data = _require_object(data, "recipe")
    cuisines = data.get("cuisines") or []
    dish_types = data.get("dishTypes") or []

    tags: list[str] = [
        *cuisines,
        *dish_types,
        *(data.get("diets") or []),
        *(data.get("occasions") or []),
    ]
    tags.extend(label for field, label in _FLAG_TAGS if data.get(field))

    instructions = _HTML_TAG_RE.sub("", data.get("instructions") or "")

    return Recipe(
        id=int(data["id"]),
        name=data.get("title") or "",
        category=dish_types[0] if dish_types else "",
        area=cuisines[0] if cuisines else "",
        instructions=instructions,
        thumbnail=data.get("image") or "",
        ingredients=[_convert_ingredient(i) for i in data.get("extendedIngredients") or []],
        video_url=data.get("spoonacularSourceUrl"),
        tags=sorted(set(tags)),
        source=PROVIDER_NAME,
    )


class SpoonacularProvider(IRecipeProvider):
    """Recipe provider backed by the Spoonacular REST API.

    The ``httpx.AsyncClient`` and the cache backend are injected for
    testability; both are owned by the caller.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        cache: ICacheProvider,
        api_key: str,
        *,
        base_url: str = _BASE_URL,
        daily_quota: int = _DAILY_QUOTA,
        min_request_interval: float = 0.1,
        call_timeout: float = 20.0,
        ttls: CacheTTLs | None = None,
        detail_concurrency: int = _DETAIL_CONCURRENCY,
        today: date | None = None,
    ) -> None:
        self._api_key = api_key
        self._fetcher = JsonFetcher(
            http_client,
            provider_name=PROVIDER_NAME,
            base_url=base_url,
            min_request_interval=min_request_interval,
            call_timeout=call_timeout,
        )
        self._cache = CacheAside(cache, PROVIDER_NAME)
        self._ttls = ttls or CacheTTLs()
        self._detail_concurrency = detail_concurrency
        self._quota = ProviderQuota(PROVIDER_NAME, daily_quota, today=today)
        self._logger = get_logger(__name__)

    # -- Private helpers -------------------------------------------------------

    async def _get(self, path: str, params: dict[str, Any] | None = None, **kwargs: Any) -> Any:
        query = {"apiKey": self._api_key, **(params or {})}
        return await self._fetcher.get_json(path, query, **kwargs)

    def _convert_all(self, items: Any) -> list[Recipe]:
        if not isinstance(items, list):
            raise ProviderError(
                message=f"Expected a list of recipes, got {type(items).__name__}",
                provider_name=PROVIDER_NAME,
            )
        try:
            return [convert_recipe(item) for item in items]
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderError(
                message=f"Unexpected recipe payload: {exc}",
                provider_name=PROVIDER_NAME,
            ) from exc

    async def _warm(self, recipes: list[Recipe]) -> None:
        for recipe in recipes:
            await self._cache.store(
                self._cache.key("recipe", recipe.id), recipe, self._ttls.recipe
            )

    async def _complex_search(self, key: str, limit: int, **criteria: str) -> list[Recipe]:
        """Run ``recipes/complexSearch`` through the search cache."""

        async def _load() -> list[Recipe]:
            payload = await self._get(
                "recipes/complexSearch",
                {**criteria, "number": limit, "addRecipeInformation": "true"},
            )
            results = payload.get("results", []) if isinstance(payload, dict) else None
            recipes = self._convert_all(results)
            await self._warm(recipes)
            self._logger.info(
                "spoonacular_search_complete", criteria=criteria, result_count=len(recipes)
            )
            return recipes

        return await self._cache.fetch(key, _load, self._ttls.search, list[Recipe])

    # -- IRecipeProvider: identity and quota -----------------------------------

    def get_provider_name(self) -> str:
        return PROVIDER_NAME

    @property
    def daily_quota(self) -> int:
        return self._quota.daily_limit

    @property
    def quota(self) -> ProviderQuota:
        return self._quota

    def get_remaining_calls(self) -> int:
        return self._quota.remaining()

    def increment_api_usage(self, count: int = 1) -> None:
        used = self._quota.increment(count)
        if used > self._quota.daily_limit:
            self._logger.warning(
                "spoonacular_quota_overrun", used=used, daily_quota=self._quota.daily_limit
            )

    def reset_daily_counter(self) -> None:
        self._quota.reset_daily()
        self._logger.info("spoonacular_quota_reset")

    # -- IRecipeSource ---------------------------------------------------------

    async def get_recipe_by_id(self, recipe_id: int) -> Recipe | None:
        """Fetch ``recipes/{id}/information``; a 404 means no such recipe."""

        async def _load() -> Recipe | None:
            payload = await self._get(
                f"recipes/{recipe_id}/information",
                {"includeNutrition": "false"},
                allow_not_found=True,
            )
            if not payload:
                return None
            try:
                return convert_recipe(payload)
            except (KeyError, TypeError, ValueError) as exc:
                raise ProviderError(
                    message=f"Unexpected payload for recipe {recipe_id}: {exc}",
                    provider_name=PROVIDER_NAME,
                ) from exc

        return await self._cache.fetch(
            self._cache.key("recipe", recipe_id), _load, self._ttls.recipe, Recipe
        )

    async def search_recipes_by_name(self, name: str, limit: int = 10) -> list[Recipe]:
        if not name.strip():
            return []
        key = self._cache.key("search", name, limit)
        return await self._complex_search(key, limit, query=name.strip())

    async def get_random_recipes(self, count: int) -> list[Recipe]:
        if count <= 0:
            return []
        payload = await self._get("recipes/random", {"number": count})
        items = payload.get("recipes", []) if isinstance(payload, dict) else None
        recipes = self._convert_all(items)
        await self._warm(recipes)
        self._logger.info("spoonacular_random_complete", requested=count, returned=len(recipes))
        return recipes

    async def get_categories(self) -> list[Category]:
        return list(_CATEGORIES)

    async def get_recipes_by_category(self, category: str, limit: int = 20) -> list[Recipe]:
        if not category.strip():
            return []
        key = self._cache.key("category", category, limit)
        return await self._complex_search(key, limit, type=category.strip().lower())

    async def get_cuisines(self) -> list[str]:
        return list(_CUISINES)

    async def get_recipes_by_cuisine(self, cuisine: str, limit: int = 20) -> list[Recipe]:
        if not cuisine.strip():
            return []
        key = self._cache.key("cuisine", cuisine, limit)
        return await self._complex_search(key, limit, cuisine=cuisine.strip())

    async def get_ingredients(self) -> list[str]:
        return list(_INGREDIENTS)

    async def get_recipes_by_ingredient(self, ingredient: str, limit: int = 20) -> list[Recipe]:
        """Run ``recipes/findByIngredients`` and resolve each hit by id."""
        if not ingredient.strip():
            return []

        async def _load() -> list[Recipe]:
            payload = await self._get(
                "recipes/findByIngredients",
                {"ingredients": ingredient.strip(), "number": limit},
            )
            if not isinstance(payload, list):
                raise ProviderError(
                    message="Expected a list from findByIngredients",
                    provider_name=PROVIDER_NAME,
                )
            try:
                ids = [int(_require_object(item, "match")["id"]) for item in payload]
            except (KeyError, TypeError, ValueError) as exc:
                raise ProviderError(
                    message=f"Unexpected findByIngredients payload: {exc}",
                    provider_name=PROVIDER_NAME,
                ) from exc
            details = await throttled_gather(
                [self.get_recipe_by_id(recipe_id) for recipe_id in ids],
                limit=self._detail_concurrency,
            )
            recipes = [r for r in details if isinstance(r, Recipe)]
            self._logger.info(
                "spoonacular_ingredient_search_complete",
                ingredient=ingredient,
                result_count=len(recipes),
            )
            return recipes

        key = self._cache.key("ingredient", ingredient, limit)
        return await self._cache.fetch(key, _load, self._ttls.search, list[Recipe])
