"""Cache entry record shared by the cache backends."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class CacheEntry:
    """A stored cache record.

    Attributes
    ----------
    key:
        Unique, opaque cache key.
    serialized_value:
        JSON payload produced by :func:`src.utils.serialization.encode_value`.
    expires_at:
        Absolute UTC expiry instant, or ``None`` for entries that never
        expire.
    """

    key: str
    serialized_value: str
    expires_at: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        """Return ``True`` once *now* has reached ``expires_at``."""
        return self.expires_at is not None and now >= self.expires_at
