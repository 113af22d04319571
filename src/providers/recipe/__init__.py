"""Recipe providers: Spoonacular (native quota) and TheMealDB (via adapter)."""

from src.providers.recipe.cache_aside import CacheAside, CacheTTLs
from src.providers.recipe.call_meter import ExternalCallMeter, record_external_call
from src.providers.recipe.mealdb_adapter import MealDbAdapter
from src.providers.recipe.mealdb_client import MealDbClient
from src.providers.recipe.spoonacular_provider import SpoonacularProvider

__all__ = [
    "CacheAside",
    "CacheTTLs",
    "ExternalCallMeter",
    "MealDbAdapter",
    "MealDbClient",
    "SpoonacularProvider",
    "record_external_call",
]
