"""Domain models for recipes, cache entries and provider quota."""

from src.models.cache import CacheEntry
from src.models.quota import ProviderQuota, QuotaSnapshot, QuotaUsage
from src.models.recipe import Category, Ingredient, Recipe

__all__ = [
    "CacheEntry",
    "Category",
    "Ingredient",
    "ProviderQuota",
    "QuotaSnapshot",
    "QuotaUsage",
    "Recipe",
]
