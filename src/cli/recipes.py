# =============================================================================
# src/cli/recipes.py — Operator CLI for the recipe aggregation layer
# =============================================================================
#
# Builds one RecipeHub from Settings (environment / .env), runs a single
# command against it and closes it again, so quota usage is persisted and
# the durable cache swept on every invocation.
#
# Supported subcommands:
#
#   recipe ID                   Look up one recipe by id
#   search NAME [--limit N]     Search recipes by name
#   random [N]                  N random recipes (never cached)
#   categories / cuisines / ingredients  Catalogue lists
#   by-category / by-cuisine / by-ingredient VALUE [--limit N]
#   quota                       Used / total / remaining per provider
#   reset-quota                 Force a new quota day on every provider
#   sweep-cache                 Delete expired rows from the durable cache
#
# Results go to stdout (text or --json); logs go to stderr.
# =============================================================================

"""Operator CLI for querying recipes and managing provider quota.

Usage::

    python -m src.cli search curry --limit 5
    python -m src.cli by-cuisine Italian --json
    python -m src.cli quota
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

import httpx

from src.config.settings import Settings
from src.main import RecipeHub, build_recipe_hub
from src.models.recipe import Category, Recipe
from src.providers.cache.sqlite_cache import SQLiteCacheProvider
from src.utils.errors import RecipeHubError
from src.utils.logging import configure_logging

# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def _format_recipe(recipe: Recipe) -> str:
    lines = [f"[{recipe.id}] {recipe.name}  ({recipe.source})"]
    details = " | ".join(x for x in (recipe.category, recipe.area) if x)
    if details:
        lines.append(f"    {details}")
    if recipe.tags:
        lines.append(f"    Tags: {', '.join(recipe.tags)}")
    return "\n".join(lines)


def _format_recipe_detail(recipe: Recipe) -> str:
    lines = [_format_recipe(recipe), ""]
    if recipe.ingredients:
        lines.append("Ingredients:")
        for ing in recipe.ingredients:
            lines.append(f"  - {ing.measure} {ing.name}" if ing.measure else f"  - {ing.name}")
        lines.append("")
    if recipe.instructions:
        lines.append("Instructions:")
        lines.append(recipe.instructions.strip())
    return "\n".join(lines)


def _to_jsonable(result: Any) -> Any:
    if isinstance(result, (Recipe, Category)):
        return result.model_dump()
    if isinstance(result, list):
        return [_to_jsonable(r) for r in result]
    if isinstance(result, dict):
        return {k: _to_jsonable(v) for k, v in result.items()}
    if hasattr(result, "model_dump"):
        return result.model_dump()
    return result


def _format_text(command: str, result: Any) -> str:
    if result is None:
        return "No recipe found."
    if isinstance(result, Recipe):
        return _format_recipe_detail(result)
    if command == "sweep-cache":
        return f"Removed {result['removed']} expired entries from the {result['backend']} cache."
    if command in ("quota", "reset-quota"):
        lines = [f"{'Provider':<14} {'Used':>6} {'Total':>6} {'Left':>6}"]
        for usage in result.values():
            lines.append(
                f"{usage.provider:<14} {usage.used:>6} {usage.total:>6} {usage.remaining:>6}"
            )
        return "\n".join(lines)
    if isinstance(result, list):
        if not result:
            return "No results."
        if isinstance(result[0], Recipe):
            return "\n".join(_format_recipe(r) for r in result)
        if isinstance(result[0], Category):
            return "\n".join(
                f"{c.name}: {c.description}" if c.description else c.name for c in result
            )
        return "\n".join(str(item) for item in result)
    return str(result)


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------


async def _dispatch(args: argparse.Namespace, hub: RecipeHub) -> Any:
    service = hub.service
    command = args.command

    if command == "recipe":
        return await service.get_recipe_by_id(args.id)
    if command == "search":
        return await service.search_recipes_by_name(args.name, args.limit)
    if command == "random":
        return await service.get_random_recipes(args.count)
    if command == "categories":
        return await service.get_categories()
    if command == "cuisines":
        return await service.get_cuisines()
    if command == "ingredients":
        return await service.get_ingredients()
    if command == "by-category":
        return await service.get_recipes_by_category(args.value, args.limit)
    if command == "by-cuisine":
        return await service.get_recipes_by_cuisine(args.value, args.limit)
    if command == "by-ingredient":
        return await service.get_recipes_by_ingredient(args.value, args.limit)
    if command == "quota":
        return service.get_api_usage_statistics()
    if command == "reset-quota":
        await service.reset_daily_counters()
        return service.get_api_usage_statistics()
    if command == "sweep-cache":
        if not isinstance(hub.cache, SQLiteCacheProvider):
            return {"removed": 0, "backend": hub.cache.get_provider_name()}
        removed = await hub.cache.sweep_expired()
        return {"removed": removed, "backend": hub.cache.get_provider_name()}
    raise ValueError(f"Unknown command: {command}")


async def run_command(
    args: argparse.Namespace,
    app_settings: Settings,
    http_client: httpx.AsyncClient | None = None,
) -> int:
    """Build the hub, run one command, print the result, close the hub."""
    try:
        async with build_recipe_hub(app_settings, http_client=http_client) as hub:
            result = await _dispatch(args, hub)
    except RecipeHubError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(_to_jsonable(result), indent=2, ensure_ascii=False))
    else:
        print(_format_text(args.command, result))
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the recipe CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m src.cli",
        description="Query recipes across providers and manage their daily quota.",
    )
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    recipe_parser = subparsers.add_parser("recipe", help="Look up a recipe by id")
    recipe_parser.add_argument("id", type=int, help="Provider-specific recipe id")

    search_parser = subparsers.add_parser("search", help="Search recipes by name")
    search_parser.add_argument("name", help="Full or partial recipe name")
    search_parser.add_argument("--limit", type=int, default=10, help="Max results (default: 10)")

    random_parser = subparsers.add_parser("random", help="Random recipes (never cached)")
    random_parser.add_argument("count", type=int, nargs="?", default=1, help="How many")

    subparsers.add_parser("categories", help="List dish categories")
    subparsers.add_parser("cuisines", help="List cuisines")
    subparsers.add_parser("ingredients", help="List ingredients")

    for name, label in (
        ("by-category", "category"),
        ("by-cuisine", "cuisine"),
        ("by-ingredient", "ingredient"),
    ):
        filter_parser = subparsers.add_parser(name, help=f"Recipes by {label}")
        filter_parser.add_argument("value", help=f"The {label} to filter on")
        filter_parser.add_argument(
            "--limit", type=int, default=20, help="Max results (default: 20)"
        )

    subparsers.add_parser("quota", help="Show API usage per provider")
    subparsers.add_parser("reset-quota", help="Force a daily quota reset")
    subparsers.add_parser("sweep-cache", help="Delete expired entries from the durable cache")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.  Exits with 0 on success and 1 on any RecipeHub error."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    app_settings = Settings()
    # Logs go to stderr so stdout carries only the command result.
    configure_logging(
        log_level=app_settings.log_level,
        json_output=(app_settings.app_env == "production"),
        stream=sys.stderr,
    )

    exit_code = asyncio.run(run_command(args, app_settings))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
