"""Daily call-budget bookkeeping for recipe providers.

:class:`ProviderQuota` is the tracker every provider owns.  It has no timer:
the owning process decides when a new day has started and calls
:meth:`ProviderQuota.reset_daily` (directly, or through
``AggregateRecipeService.reset_if_new_day``).

``used`` is allowed to run past ``daily_limit``.  Over-limit calls still
happen when concurrent queries race past the admission check, and they are
counted so the usage statistics stay truthful; only ``remaining`` is clamped.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import date

from pydantic import BaseModel, ConfigDict

from src.utils.errors import InvalidArgumentError


@dataclass(frozen=True)
class QuotaSnapshot:
    """Point-in-time copy of a tracker, used for persistence."""

    provider_name: str
    daily_limit: int
    used: int
    last_reset: date


class QuotaUsage(BaseModel):
    """Usage statistics for one provider, as reported to operators."""

    model_config = ConfigDict(frozen=True)

    provider: str
    used: int
    total: int
    remaining: int

    @property
    def usage_percentage(self) -> float:
        if self.total <= 0:
            return 100.0
        return self.used * 100.0 / self.total


class ProviderQuota:
    """Per-provider daily quota counter.

    Parameters
    ----------
    provider_name:
        Owner of this tracker, used in log lines and persistence.
    daily_limit:
        Allowed external calls per day.  Must be non-negative.
    """

    def __init__(self, provider_name: str, daily_limit: int, *, today: date | None = None) -> None:
        if daily_limit < 0:
            raise InvalidArgumentError(
                f"daily_limit must be non-negative, got {daily_limit}",
                provider_name=provider_name,
            )
        self._provider_name = provider_name
        self._daily_limit = daily_limit
        self._used = 0
        self._last_reset = today or date.today()
        # Threading lock so increments from worker threads are not lost either.
        self._lock = threading.Lock()

    @property
    def provider_name(self) -> str:
        return self._provider_name

    @property
    def daily_limit(self) -> int:
        return self._daily_limit

    @property
    def used(self) -> int:
        with self._lock:
            return self._used

    @property
    def last_reset(self) -> date:
        with self._lock:
            return self._last_reset

    def remaining(self) -> int:
        """Calls left today, never negative."""
        with self._lock:
            return max(0, self._daily_limit - self._used)

    def increment(self, count: int = 1) -> int:
        """Add *count* calls to ``used`` and return the new total."""
        if count < 0:
            raise InvalidArgumentError(
                f"Usage increment must be non-negative, got {count}",
                provider_name=self._provider_name,
            )
        with self._lock:
            self._used += count
            return self._used

    def reset_daily(self, today: date | None = None) -> None:
        """Start a new day: ``used`` goes back to zero."""
        with self._lock:
            self._used = 0
            self._last_reset = today or date.today()

    def needs_reset(self, today: date) -> bool:
        """Return ``True`` when the last reset happened before *today*."""
        with self._lock:
            return self._last_reset < today

    def snapshot(self) -> QuotaSnapshot:
        with self._lock:
            return QuotaSnapshot(
                provider_name=self._provider_name,
                daily_limit=self._daily_limit,
                used=self._used,
                last_reset=self._last_reset,
            )

    def restore(self, snapshot: QuotaSnapshot) -> None:
        """Load ``used`` and ``last_reset`` from a persisted snapshot.

        The configured ``daily_limit`` is kept; a quota change in settings
        takes effect immediately rather than being overwritten by old state.
        """
        if snapshot.used < 0:
            raise InvalidArgumentError(
                f"Persisted usage must be non-negative, got {snapshot.used}",
                provider_name=self._provider_name,
            )
        with self._lock:
            self._used = snapshot.used
            self._last_reset = snapshot.last_reset

    def usage(self) -> QuotaUsage:
        with self._lock:
            return QuotaUsage(
                provider=self._provider_name,
                used=self._used,
                total=self._daily_limit,
                remaining=max(0, self._daily_limit - self._used),
            )

    def __repr__(self) -> str:
        return (
            f"ProviderQuota(provider_name={self._provider_name!r}, "
            f"daily_limit={self._daily_limit}, used={self.used})"
        )
