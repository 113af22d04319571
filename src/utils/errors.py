"""Custom exception hierarchy for RecipeHub.

All application exceptions inherit from :class:`RecipeHubError`, which
carries an optional ``provider_name`` so error handlers can identify which
external recipe source (e.g. "spoonacular", "themealdb") caused the failure.

The hierarchy is organized by layer:

    RecipeHubError  (base -- catch-all for any RecipeHub error)
    +-- InvalidArgumentError        (bad value passed to a write / constructor)
    +-- ConfigurationError          (startup / invalid settings)
    +-- DeserializationError        (cache payload cannot be decoded)
    +-- CacheStorageError           (durable cache medium failure)
    +-- ProviderError               (one provider's external call failed)
    +-- AllProvidersExhaustedError  (no provider has quota left)
    +-- AggregateQueryFailedError   (every provider was tried and failed)

Cache-layer errors are never reinterpreted as a cache miss.  Provider errors
are absorbed by the aggregation service, which falls through to the next
provider and only surfaces one of the two terminal aggregate errors.
"""

from __future__ import annotations


class RecipeHubError(Exception):
    """Base exception for all RecipeHub errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name``.  ``__str__`` prefixes the provider name in brackets
    for structured log output, e.g. ``[spoonacular] HTTP 402``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Argument / configuration errors
# ---------------------------------------------------------------------------

class InvalidArgumentError(RecipeHubError, ValueError):
    """Raised when a caller passes an unusable argument (e.g. a ``None`` cache value)."""

    def __init__(
        self,
        message: str = "Invalid argument",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(RecipeHubError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Cache errors
# ---------------------------------------------------------------------------

class DeserializationError(RecipeHubError):
    """Raised when a stored cache payload cannot be decoded to the requested shape.

    This is deliberately *not* a cache miss: corrupt data must surface.
    """

    def __init__(
        self,
        message: str = "Cached value could not be decoded",
        provider_name: str | None = None,
        key: str | None = None,
    ) -> None:
        self.key = key
        super().__init__(message=message, provider_name=provider_name)


class CacheStorageError(RecipeHubError):
    """Raised when the durable cache's storage medium fails (file or sqlite error)."""

    def __init__(
        self,
        message: str = "Cache storage is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Provider / aggregation errors
# ---------------------------------------------------------------------------

class ProviderError(RecipeHubError):
    """Raised when a single provider's external call fails.

    Covers network errors, non-success HTTP statuses, malformed responses,
    remote rate limiting and caller-level timeouts.  The aggregation service
    catches this to try the next provider in the configured order.
    """

    def __init__(
        self,
        message: str = "External recipe source call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class AllProvidersExhaustedError(RecipeHubError):
    """Raised when every configured provider reports zero remaining quota."""

    def __init__(
        self,
        message: str = "All recipe providers have exhausted their daily quota",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class AggregateQueryFailedError(RecipeHubError):
    """Raised when every eligible provider was attempted and every attempt failed.

    ``failures`` keeps the per-provider errors in the order they were tried.
    """

    def __init__(
        self,
        failures: list[ProviderError],
        message: str | None = None,
    ) -> None:
        self._failures = list(failures)
        if message is None:
            tried = ", ".join(str(f) for f in self._failures) or "none"
            message = f"All recipe providers failed: {tried}"
        super().__init__(message=message)

    @property
    def failures(self) -> list[ProviderError]:
        return list(self._failures)

    @property
    def tried_providers(self) -> list[str]:
        return [f.provider_name or "unknown" for f in self._failures]
