# =============================================================================
# src/cli/__init__.py — CLI Module Overview
# =============================================================================
#
# Command-line tools for operators of the recipe aggregation layer.
#
#   RECIPES (recipes.py)
#      Queries recipes through the provider fallback chain, shows and
#      resets per-provider daily quota, and sweeps the durable cache.
#
# Architecture Notes:
#   - argparse for argument parsing (not Click/Typer).
#   - Each invocation builds its own RecipeHub and closes it again, since
#     CLI tools run as one-shot scripts, not long-lived servers.
# =============================================================================

"""CLI tools for the recipe hub.

- ``python -m src.cli`` / ``python -m src.cli.recipes`` : query recipes
  and manage provider quota.
"""
