"""Application settings loaded from environment variables via pydantic-settings.

Two sources are read, in priority order:

  1. Environment variables, e.g. ``SPOONACULAR_API_KEY=abc123`` (always wins)
  2. A ``.env`` file in the working directory (local development)

Field ``spoonacular_api_key`` maps to env var ``SPOONACULAR_API_KEY``.
Defaults apply when neither source defines a field.  An empty Spoonacular key
means "not configured": the provider is left out of the aggregation order and
TheMealDB (no key needed) serves every query.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DAY = 24 * 60 * 60


class Settings(BaseSettings):
    """RecipeHub application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === Recipe Providers ===
    spoonacular_api_key: str = ""
    spoonacular_base_url: str = "https://api.spoonacular.com/"
    spoonacular_daily_quota: int = Field(default=150, ge=0)  # free plan allowance
    spoonacular_min_request_interval: float = 0.1  # seconds between calls
    mealdb_base_url: str = "https://www.themealdb.com/api/json/v1/"
    mealdb_api_key: str = "1"  # public test key
    mealdb_nominal_quota: int = Field(default=1000, gt=0)
    mealdb_detail_concurrency: int = Field(default=4, gt=0)

    # Fallback priority.  Unknown names are a ConfigurationError at startup.
    provider_order: list[str] = ["spoonacular", "themealdb"]

    # === Cache ===
    cache_backend: str = "sqlite"  # "sqlite" (durable) or "memory" (volatile)
    cache_db_path: str = "data/cache.db"
    memory_cache_max_size: int = Field(default=10_000, gt=0)
    catalog_cache_ttl: int = 30 * _DAY  # category / cuisine / ingredient lists
    recipe_cache_ttl: int = 7 * _DAY  # single recipe lookups
    search_cache_ttl: int = 1 * _DAY  # search and filter results

    # === Quota persistence ===
    quota_db_path: str = "data/metrics.db"

    # === HTTP ===
    http_timeout: float = 30.0
    provider_call_timeout: float = 20.0

    # === App Config ===
    app_env: str = "development"
    log_level: str = "INFO"

    def get_available_providers(self) -> list[str]:
        """Return provider names from ``provider_order`` that are usable with this config."""
        available: list[str] = []
        for name in self.provider_order:
            if name == "spoonacular" and not self.spoonacular_api_key:
                continue
            available.append(name)
        return available
