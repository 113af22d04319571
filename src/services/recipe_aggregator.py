"""Quota-aware recipe aggregation with an ordered fallback chain.

Architecture: Fallback Chain Pattern
-------------------------------------
:class:`AggregateRecipeService` holds recipe providers in a fixed priority
order and answers every query with the first provider that still has
quota left today:

    1. Select: scan the order, skipping providers already tried for this
       query, and pick the first whose ``get_remaining_calls() > 0``.
    2. Invoke the provider inside a fresh :class:`ExternalCallMeter`.
    3. On success, charge the provider the number of external calls the
       meter counted (zero on a cache hit) and return the result.
    4. On failure, record the error, charge nothing, and go back to 1.

A query fails in exactly one of two ways.  If no provider was eligible
before anything was tried, :class:`AllProvidersExhaustedError`.  If at
least one provider was tried and every tried provider failed,
:class:`AggregateQueryFailedError` with the failures in the order they
happened.  A provider that failed is never retried within the same query.

An empty list or a ``None`` recipe is a successful answer and stops the
chain; the service does not merge results across providers.
"""

from __future__ import annotations

import asyncio
from datetime import date
from typing import Awaitable, Callable, TypeVar

from src.interfaces.quota_store import IQuotaStore
from src.interfaces.recipe_provider import IRecipeProvider, IRecipeSource
from src.models.quota import QuotaUsage
from src.models.recipe import Category, Recipe
from src.providers.recipe.call_meter import ExternalCallMeter
from src.utils.errors import (
    AggregateQueryFailedError,
    AllProvidersExhaustedError,
    CacheStorageError,
    InvalidArgumentError,
    ProviderError,
    RecipeHubError,
)
from src.utils.logging import get_logger

_T = TypeVar("_T")


class AggregateRecipeService(IRecipeSource):
    """Routes recipe queries across providers by priority and remaining quota.

    Parameters
    ----------
    providers:
        Providers in fallback priority order.  Must be non-empty with
        unique provider names.
    quota_store:
        Optional persistence for per-provider usage.  When given, usage is
        saved after every charged call and after resets.  A failed save
        after a successful query is logged and the result is still
        returned.
    """

    def __init__(
        self,
        providers: list[IRecipeProvider],
        quota_store: IQuotaStore | None = None,
    ) -> None:
        if not providers:
            raise InvalidArgumentError("At least one recipe provider is required")
        names = [p.get_provider_name() for p in providers]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise InvalidArgumentError(
                f"Duplicate provider names in aggregation order: {', '.join(duplicates)}"
            )
        self._providers: tuple[IRecipeProvider, ...] = tuple(providers)
        self._quota_store = quota_store
        # Saves run one at a time so a stale snapshot never lands last.
        self._save_lock = asyncio.Lock()
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Fallback chain
    # ------------------------------------------------------------------

    def _select(self, tried: set[str]) -> IRecipeProvider | None:
        """Return the first untried provider with quota left, if any."""
        for provider in self._providers:
            name = provider.get_provider_name()
            if name in tried:
                continue
            if provider.get_remaining_calls() > 0:
                return provider
            self._logger.info("provider_quota_exhausted", provider=name)
        return None

    async def _charge(self, provider: IRecipeProvider, calls: int) -> None:
        if calls <= 0:
            return
        provider.increment_api_usage(calls)
        if self._quota_store is None:
            return
        try:
            async with self._save_lock:
                await self._quota_store.save(provider.quota.snapshot())
        except CacheStorageError as exc:
            # The in-memory counter is charged; the next save catches up.
            self._logger.warning(
                "quota_save_failed",
                provider=provider.get_provider_name(),
                error=str(exc),
            )

    async def _execute(
        self,
        operation: str,
        call: Callable[[IRecipeProvider], Awaitable[_T]],
    ) -> _T:
        tried: set[str] = set()
        failures: list[ProviderError] = []

        while True:
            provider = self._select(tried)
            if provider is None:
                break
            name = provider.get_provider_name()
            tried.add(name)
            meter = ExternalCallMeter()
            try:
                with meter:
                    result = await call(provider)
            except ProviderError as exc:
                failure = exc
            except RecipeHubError as exc:
                failure = ProviderError(message=exc.message, provider_name=name)
                failure.__cause__ = exc
            else:
                await self._charge(provider, meter.count)
                self._logger.debug(
                    "provider_query_served",
                    operation=operation,
                    provider=name,
                    external_calls=meter.count,
                )
                return result

            failures.append(failure)
            self._logger.warning(
                "provider_fallback",
                operation=operation,
                provider=name,
                error=str(failure),
            )

        if failures:
            self._logger.error(
                "aggregate_query_failed",
                operation=operation,
                tried=[f.provider_name for f in failures],
            )
            raise AggregateQueryFailedError(failures)

        self._logger.error("all_providers_exhausted", operation=operation)
        raise AllProvidersExhaustedError()

    # ------------------------------------------------------------------
    # IRecipeSource
    # ------------------------------------------------------------------

    async def get_recipe_by_id(self, recipe_id: int) -> Recipe | None:
        return await self._execute(
            "get_recipe_by_id", lambda p: p.get_recipe_by_id(recipe_id)
        )

    async def search_recipes_by_name(self, name: str, limit: int = 10) -> list[Recipe]:
        return await self._execute(
            "search_recipes_by_name", lambda p: p.search_recipes_by_name(name, limit)
        )

    async def get_random_recipes(self, count: int) -> list[Recipe]:
        return await self._execute(
            "get_random_recipes", lambda p: p.get_random_recipes(count)
        )

    async def get_categories(self) -> list[Category]:
        return await self._execute("get_categories", lambda p: p.get_categories())

    async def get_recipes_by_category(self, category: str, limit: int = 20) -> list[Recipe]:
        return await self._execute(
            "get_recipes_by_category", lambda p: p.get_recipes_by_category(category, limit)
        )

    async def get_cuisines(self) -> list[str]:
        return await self._execute("get_cuisines", lambda p: p.get_cuisines())

    async def get_recipes_by_cuisine(self, cuisine: str, limit: int = 20) -> list[Recipe]:
        return await self._execute(
            "get_recipes_by_cuisine", lambda p: p.get_recipes_by_cuisine(cuisine, limit)
        )

    async def get_ingredients(self) -> list[str]:
        return await self._execute("get_ingredients", lambda p: p.get_ingredients())

    async def get_recipes_by_ingredient(self, ingredient: str, limit: int = 20) -> list[Recipe]:
        return await self._execute(
            "get_recipes_by_ingredient",
            lambda p: p.get_recipes_by_ingredient(ingredient, limit),
        )

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    @property
    def providers(self) -> tuple[IRecipeProvider, ...]:
        return self._providers

    def get_provider_priority(self) -> list[str]:
        """Provider names in fallback order."""
        return [p.get_provider_name() for p in self._providers]

    def get_remaining_calls(self) -> dict[str, int]:
        return {p.get_provider_name(): p.get_remaining_calls() for p in self._providers}

    def get_api_usage_statistics(self) -> dict[str, QuotaUsage]:
        """Used / total / remaining per provider, in priority order."""
        stats: dict[str, QuotaUsage] = {}
        for provider in self._providers:
            name = provider.get_provider_name()
            stats[name] = QuotaUsage(
                provider=name,
                used=provider.quota.used,
                total=provider.daily_quota,
                remaining=provider.get_remaining_calls(),
            )
        return stats

    async def reset_daily_counters(self) -> None:
        """Force a new quota day on every provider."""
        for provider in self._providers:
            provider.reset_daily_counter()
        self._logger.info("daily_counters_reset", providers=self.get_provider_priority())
        await self.persist_quota_state()

    async def reset_if_new_day(self, today: date | None = None) -> list[str]:
        """Reset every provider whose last reset happened before *today*.

        Returns the names of the providers that were reset.
        """
        today = today or date.today()
        reset: list[str] = []
        for provider in self._providers:
            if provider.quota.needs_reset(today):
                provider.quota.reset_daily(today)
                reset.append(provider.get_provider_name())
        if reset:
            self._logger.info("quota_day_rolled_over", providers=reset, today=today.isoformat())
            await self.persist_quota_state()
        return reset

    async def load_quota_state(self, today: date | None = None) -> None:
        """Restore persisted usage, then roll over providers from a past day."""
        if self._quota_store is None:
            return
        for provider in self._providers:
            snapshot = await self._quota_store.load(provider.get_provider_name())
            if snapshot is not None:
                provider.quota.restore(snapshot)
        self._logger.info("quota_state_loaded", providers=self.get_provider_priority())
        await self.reset_if_new_day(today)

    async def persist_quota_state(self) -> None:
        if self._quota_store is None:
            return
        async with self._save_lock:
            await self._quota_store.save_all([p.quota.snapshot() for p in self._providers])
