"""Abstract base classes for recipe sources.

:class:`IRecipeSource` is the query surface shared by every concrete provider
and by ``AggregateRecipeService``, which is itself a recipe-source facade.
:class:`IRecipeProvider` adds the identity and daily-quota bookkeeping the
aggregation layer uses to pick a provider.

Each query returns either a single optional :class:`Recipe` or an ordered
list.  An empty list (or ``None`` for id lookups) is a valid answer, not a
failure; failures raise :class:`~src.utils.errors.ProviderError`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.quota import ProviderQuota
from src.models.recipe import Category, Recipe


class IRecipeSource(ABC):
    """Uniform recipe query surface."""

    @abstractmethod
    async def get_recipe_by_id(self, recipe_id: int) -> Recipe | None:
        """Look up one recipe by its provider-specific id.

        Returns
        -------
        Recipe or None
            ``None`` if the source has no recipe with that id.

        Raises
        ------
        src.utils.errors.ProviderError
            If the external call fails.
        """

    @abstractmethod
    async def search_recipes_by_name(self, name: str, limit: int = 10) -> list[Recipe]:
        """Search recipes whose name matches *name*.

        Parameters
        ----------
        name:
            Full or partial recipe name.  Blank names return ``[]``.
        limit:
            Result-count hint.  Sources that cannot limit server-side may
            return more.
        """

    @abstractmethod
    async def get_random_recipes(self, count: int) -> list[Recipe]:
        """Return up to *count* randomly chosen recipes.  Never cached."""

    @abstractmethod
    async def get_categories(self) -> list[Category]:
        """Return every dish category the source knows about."""

    @abstractmethod
    async def get_recipes_by_category(self, category: str, limit: int = 20) -> list[Recipe]:
        """Return recipes in *category*."""

    @abstractmethod
    async def get_cuisines(self) -> list[str]:
        """Return every cuisine (region / area) name."""

    @abstractmethod
    async def get_recipes_by_cuisine(self, cuisine: str, limit: int = 20) -> list[Recipe]:
        """Return recipes from *cuisine*."""

    @abstractmethod
    async def get_ingredients(self) -> list[str]:
        """Return every ingredient name."""

    @abstractmethod
    async def get_recipes_by_ingredient(self, ingredient: str, limit: int = 20) -> list[Recipe]:
        """Return recipes that use *ingredient*."""


class IRecipeProvider(IRecipeSource):
    """A recipe source backed by one external API with a daily call budget.

    The aggregation service is the only caller of the quota methods: it
    checks :meth:`get_remaining_calls` before a query and charges the calls
    actually made through :meth:`increment_api_usage` after a success.
    """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the unique name of this provider (e.g. ``"spoonacular"``)."""

    @property
    @abstractmethod
    def daily_quota(self) -> int:
        """Allowed external calls per day."""

    @property
    @abstractmethod
    def quota(self) -> ProviderQuota:
        """The tracker behind the quota methods, used for persistence."""

    @abstractmethod
    def get_remaining_calls(self) -> int:
        """Calls left today; never negative."""

    @abstractmethod
    def increment_api_usage(self, count: int = 1) -> None:
        """Record *count* external calls against today's quota."""

    @abstractmethod
    def reset_daily_counter(self) -> None:
        """Start a new quota day."""
