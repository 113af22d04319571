"""Utility modules for RecipeHub.

- **errors** -- Domain exception hierarchy rooted at RecipeHubError; each
  layer raises its own subclass so callers can handle failures without
  broad ``except Exception`` blocks.
- **concurrency** -- asyncio semaphore throttling for fan-out detail
  lookups that must stay under provider rate limits.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **serialization** -- JSON encoding and typed decoding of cached values.
"""

# -- Domain exception hierarchy --------------------------------------------
from src.utils.errors import (
    AggregateQueryFailedError,
    AllProvidersExhaustedError,
    CacheStorageError,
    ConfigurationError,
    DeserializationError,
    InvalidArgumentError,
    ProviderError,
    RecipeHubError,
)

# -- Async concurrency helpers ---------------------------------------------
from src.utils.concurrency import throttled_gather

# -- Structured logging setup ----------------------------------------------
from src.utils.logging import configure_logging, get_logger

# -- Cache value codec -------------------------------------------------------
from src.utils.serialization import decode_value, encode_value

__all__ = [
    "AggregateQueryFailedError",
    "AllProvidersExhaustedError",
    "CacheStorageError",
    "ConfigurationError",
    "DeserializationError",
    "InvalidArgumentError",
    "ProviderError",
    "RecipeHubError",
    "configure_logging",
    "decode_value",
    "encode_value",
    "get_logger",
    "throttled_gather",
]
