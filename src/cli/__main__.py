# =============================================================================
# src/cli/__main__.py — Package Entry Point
# =============================================================================
#
# Enables running the CLI package itself as a module:
#     python -m src.cli search curry
#
# Delegates to the recipe CLI (recipes.py).
# =============================================================================

"""Allow ``python -m src.cli`` execution."""

from src.cli.recipes import main

main()
