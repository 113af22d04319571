"""Abstract base class for cache service providers.

Defines the expiring key-value contract used by the recipe providers for
cache-aside lookups.  Two interchangeable implementations exist: an
in-process volatile store and a single-file SQLite store.  Both keep values
as opaque JSON payloads (see :mod:`src.utils.serialization`), so the
backends never need to know what is cached.

Expiration is lazy: an entry whose expiry instant has been reached is never
returned, and is physically removed by the ``get`` / ``exists`` call that
observes it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Any

# Seconds or an explicit timedelta; ``None`` means "never expires".
TTL = timedelta | float | int | None


def ttl_to_timedelta(ttl: TTL) -> timedelta | None:
    """Normalise a TTL argument into a ``timedelta`` (or ``None``)."""
    if ttl is None or isinstance(ttl, timedelta):
        return ttl
    return timedelta(seconds=ttl)


class ICacheProvider(ABC):
    """Contract for expiring key-value cache services.

    All operations are async so the durable backend can perform file I/O
    without blocking the event loop.
    """

    @abstractmethod
    async def get(self, key: str, value_type: Any = None) -> Any | None:
        """Retrieve the value stored under *key*.

        Parameters
        ----------
        key:
            The cache key to look up.
        value_type:
            Optional type to validate the payload into (e.g. ``Recipe`` or
            ``list[Recipe]``).  ``None`` returns the plain JSON value.

        Returns
        -------
        Any or None
            The decoded value if present and not expired; ``None`` otherwise.

        Raises
        ------
        src.utils.errors.DeserializationError
            If the stored payload cannot be decoded into *value_type*.
        """

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: TTL = None) -> None:
        """Store *value* under *key*, replacing any existing entry.

        Parameters
        ----------
        key:
            The cache key.
        value:
            The value to store.  Must not be ``None``.
        ttl:
            Time-to-live as a ``timedelta`` or in seconds.  ``None`` means
            the entry does not expire.

        Raises
        ------
        src.utils.errors.InvalidArgumentError
            If *value* is ``None``.  The cache is left unchanged.
        """

    @abstractmethod
    async def remove(self, key: str) -> bool:
        """Remove the entry stored under *key*.

        Returns
        -------
        bool
            ``True`` if an entry existed and was deleted.
        """

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return ``True`` if *key* is present in the cache and not expired.

        Does not decode the payload.  Evicts the entry if it has expired.
        """

    @abstractmethod
    async def clear(self) -> None:
        """Remove every entry unconditionally."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this cache backend."""
