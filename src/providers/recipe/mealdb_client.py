"""TheMealDB v1 API client.

A plain data-access client with TheMealDB's own vocabulary ("area" rather
than "cuisine") and no notion of quota, result limits or caching.  It is
exposed to the aggregation layer only through
:class:`~src.providers.recipe.mealdb_adapter.MealDbAdapter`.

TheMealDB's filter endpoints (``filter.php``) return partial meals
(id, name, thumbnail), so each hit is resolved with ``lookup.php``.
``random.php`` returns a single meal, so N random recipes cost N calls.
"""

from __future__ import annotations

from typing import Any

import httpx

from src.models.recipe import Category, Ingredient, Recipe
from src.providers.recipe.http_fetcher import JsonFetcher
from src.utils.concurrency import throttled_gather
from src.utils.errors import ProviderError
from src.utils.logging import get_logger

SOURCE_NAME = "themealdb"
_BASE_URL = "https://www.themealdb.com/api/json/v1/"
_PUBLIC_API_KEY = "1"
_MAX_INGREDIENT_SLOTS = 20


def _text(meal: dict[str, Any], field: str) -> str:
    value = meal.get(field)
    return value.strip() if isinstance(value, str) else ""


def convert_meal(meal: dict[str, Any]) -> Recipe:
    """Map a full TheMealDB meal record onto :class:`Recipe`.

    Ingredients arrive as twenty numbered ``strIngredientN`` /
    ``strMeasureN`` slots; blank slots are skipped.  Raises ``TypeError``,
    ``KeyError`` or ``ValueError`` when *meal* is not a meal object.
    """
    if not isinstance(meal, dict):
        raise TypeError(f"meal must be an object, got {type(meal).__name__}")
    ingredients: list[Ingredient] = []
    for slot in range(1, _MAX_INGREDIENT_SLOTS + 1):
        name = _text(meal, f"strIngredient{slot}")
        if name:
            ingredients.append(Ingredient(name=name, measure=_text(meal, f"strMeasure{slot}")))

    raw_tags = _text(meal, "strTags")
    tags = sorted({t.strip() for t in raw_tags.split(",") if t.strip()})

    return Recipe(
        id=int(meal["idMeal"]),
        name=_text(meal, "strMeal"),
        category=_text(meal, "strCategory"),
        area=_text(meal, "strArea"),
        instructions=_text(meal, "strInstructions"),
        thumbnail=_text(meal, "strMealThumb"),
        ingredients=ingredients,
        video_url=_text(meal, "strYoutube") or None,
        tags=tags,
        source=SOURCE_NAME,
    )


def convert_category(data: dict[str, Any]) -> Category:
    if not isinstance(data, dict):
        raise TypeError(f"category must be an object, got {type(data).__name__}")
    return Category(
        id=int(data["idCategory"]),
        name=_text(data, "strCategory"),
        description=_text(data, "strCategoryDescription"),
        thumbnail=_text(data, "strCategoryThumb"),
    )


class MealDbClient:
    """Async client for TheMealDB's JSON API."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        base_url: str = _BASE_URL,
        api_key: str = _PUBLIC_API_KEY,
        call_timeout: float = 20.0,
        detail_concurrency: int = 4,
    ) -> None:
        root = base_url if base_url.endswith("/") else base_url + "/"
        self._fetcher = JsonFetcher(
            http_client,
            provider_name=SOURCE_NAME,
            base_url=f"{root}{api_key}/",
            call_timeout=call_timeout,
        )
        self._detail_concurrency = detail_concurrency
        self._logger = get_logger(__name__)

    # -- Private helpers -------------------------------------------------------

    async def _section(
        self, path: str, section: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        """GET *path* and return the list under *section*; ``null`` means empty."""
        payload = await self._fetcher.get_json(path, params)
        if not isinstance(payload, dict):
            raise ProviderError(
                message=f"Unexpected response shape from {path}",
                provider_name=SOURCE_NAME,
            )
        items = payload.get(section)
        if items is None:
            return []
        if not isinstance(items, list):
            raise ProviderError(
                message=f"Expected a list under {section!r} from {path}",
                provider_name=SOURCE_NAME,
            )
        return items

    def _convert(self, meals: list[dict[str, Any]]) -> list[Recipe]:
        try:
            return [convert_meal(m) for m in meals]
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderError(
                message=f"Unexpected meal payload: {exc}",
                provider_name=SOURCE_NAME,
            ) from exc

    async def _filter(self, params: dict[str, str]) -> list[Recipe]:
        """Run ``filter.php`` and resolve every partial meal by id."""
        partial = await self._section("filter.php", "meals", params)
        ids: list[int] = []
        for meal in partial:
            try:
                ids.append(int(meal["idMeal"]))
            except (KeyError, TypeError, ValueError):
                self._logger.debug("mealdb_skip_partial_meal", meal=meal)
        details = await throttled_gather(
            [self.get_recipe_by_id(meal_id) for meal_id in ids],
            limit=self._detail_concurrency,
        )
        recipes = [r for r in details if isinstance(r, Recipe)]
        self._logger.info("mealdb_filter_complete", filter=params, result_count=len(recipes))
        return recipes

    # -- Queries ---------------------------------------------------------------

    async def get_recipe_by_id(self, recipe_id: int) -> Recipe | None:
        meals = self._convert(await self._section("lookup.php", "meals", {"i": recipe_id}))
        return meals[0] if meals else None

    async def search_recipes_by_name(self, name: str) -> list[Recipe]:
        return self._convert(await self._section("search.php", "meals", {"s": name}))

    async def get_random_recipes(self, count: int) -> list[Recipe]:
        recipes: list[Recipe] = []
        for _ in range(count):
            recipes.extend(self._convert(await self._section("random.php", "meals")))
        return recipes

    async def get_categories(self) -> list[Category]:
        raw = await self._section("categories.php", "categories")
        try:
            return [convert_category(c) for c in raw]
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderError(
                message=f"Unexpected category payload: {exc}",
                provider_name=SOURCE_NAME,
            ) from exc

    async def get_recipes_by_category(self, category: str) -> list[Recipe]:
        return await self._filter({"c": category})

    async def get_areas(self) -> list[str]:
        raw = await self._section("list.php", "meals", {"a": "list"})
        return [_text(a, "strArea") for a in raw if isinstance(a, dict) and _text(a, "strArea")]

    async def get_recipes_by_area(self, area: str) -> list[Recipe]:
        return await self._filter({"a": area})

    async def get_ingredients(self) -> list[str]:
        raw = await self._section("list.php", "meals", {"i": "list"})
        return [
            _text(i, "strIngredient")
            for i in raw
            if isinstance(i, dict) and _text(i, "strIngredient")
        ]

    async def get_recipes_by_ingredient(self, ingredient: str) -> list[Recipe]:
        return await self._filter({"i": ingredient})
