"""Shared pytest fixtures for the RecipeHub test suite."""

from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import httpx
import pytest

from src.models.recipe import Ingredient, Recipe
from src.providers.cache.memory_cache import MemoryCacheProvider
from src.utils.logging import configure_logging

# Keep stdout free for CLI output assertions.
configure_logging(log_level="WARNING", stream=sys.stderr)


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced UTC clock for expiry tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_cache(clock: FakeClock) -> MemoryCacheProvider:
    return MemoryCacheProvider(max_size=100, clock=clock)


# ---------------------------------------------------------------------------
# Domain objects
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_recipe() -> Recipe:
    return Recipe(
        id=52772,
        name="Teriyaki Chicken Casserole",
        category="Chicken",
        area="Japanese",
        instructions="Preheat oven to 350F.",
        thumbnail="https://www.themealdb.com/images/media/meals/wvpsxx1468256321.jpg",
        ingredients=[
            Ingredient(name="soy sauce", measure="3/4 cup"),
            Ingredient(name="water", measure="1/2 cup"),
        ],
        video_url="https://www.youtube.com/watch?v=4aZr5hZXP_s",
        tags=["Casserole", "Meat"],
        source="themealdb",
    )


def make_meal(meal_id: int, name: str = "Meal", **extra: Any) -> dict[str, Any]:
    """Build a full TheMealDB meal record."""
    meal: dict[str, Any] = {
        "idMeal": str(meal_id),
        "strMeal": name,
        "strCategory": "Seafood",
        "strArea": "Italian",
        "strInstructions": "Cook it.",
        "strMealThumb": f"https://www.themealdb.com/images/{meal_id}.jpg",
        "strTags": "Pasta,Fish",
        "strYoutube": "",
        "strIngredient1": "Salmon",
        "strMeasure1": "200g",
        "strIngredient2": "",
        "strMeasure2": "",
    }
    meal.update(extra)
    return meal


def make_spoonacular_recipe(recipe_id: int, title: str = "Recipe", **extra: Any) -> dict[str, Any]:
    """Build a Spoonacular recipe-information payload."""
    data: dict[str, Any] = {
        "id": recipe_id,
        "title": title,
        "image": f"https://img.spoonacular.com/recipes/{recipe_id}-556x370.jpg",
        "instructions": "<ol><li>Mix.</li><li>Bake.</li></ol>",
        "cuisines": ["Italian"],
        "dishTypes": ["main course", "dinner"],
        "diets": [],
        "vegetarian": True,
        "extendedIngredients": [
            {"name": "flour", "amount": 2.0, "unit": "cups"},
            {"name": "eggs", "amount": 3, "unit": ""},
        ],
        "spoonacularSourceUrl": f"https://spoonacular.com/recipe-{recipe_id}",
    }
    data.update(extra)
    return data


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


def mock_http_client(
    handler: Callable[[httpx.Request], httpx.Response],
) -> tuple[httpx.AsyncClient, RecordingTransport]:
    transport = RecordingTransport(handler)
    return httpx.AsyncClient(transport=transport), transport
