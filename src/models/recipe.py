"""Recipe domain models shared by every provider.

Pydantic v2 models with frozen config, so a recipe pulled from the cache can
be handed to several callers without defensive copying.  Providers map their
own payloads onto these types; nothing outside ``src/providers/recipe``
knows what a Spoonacular or TheMealDB response looks like.

Recipe ids are provider-specific.  ``source`` records which provider produced
the recipe so an id can be looked up again on the right provider.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Ingredient(BaseModel):
    """One line of a recipe's ingredient list."""

    model_config = ConfigDict(frozen=True)

    name: str
    measure: str = ""  # free-form, e.g. "2 cups" or "200g"


class Category(BaseModel):
    """A dish category such as "Dessert" or "Seafood"."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    description: str = ""
    thumbnail: str = ""


class Recipe(BaseModel):
    """A recipe as presented to the rest of the application.

    Attributes
    ----------
    id:
        Provider-specific identifier.
    area:
        Cuisine / region ("Italian", "Thai").  TheMealDB calls this "area".
    tags:
        Sorted, de-duplicated labels (cuisines, dish types, diets).
    source:
        Name of the provider that produced the record.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    category: str = ""
    area: str = ""
    instructions: str = ""
    thumbnail: str = ""
    ingredients: list[Ingredient] = Field(default_factory=list)
    video_url: str | None = None
    tags: list[str] = Field(default_factory=list)
    source: str = ""
