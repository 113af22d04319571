"""Abstract base class for quota-usage persistence.

Lets the aggregation service carry each provider's daily usage across
process restarts, so a restart does not hand a rate-limited API a fresh
budget in the middle of the day.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.quota import QuotaSnapshot


class IQuotaStore(ABC):
    """Contract for storing one :class:`QuotaSnapshot` per provider."""

    @abstractmethod
    async def load(self, provider_name: str) -> QuotaSnapshot | None:
        """Return the last saved snapshot for *provider_name*, or ``None``."""

    @abstractmethod
    async def save(self, snapshot: QuotaSnapshot) -> None:
        """Insert or replace the snapshot for ``snapshot.provider_name``."""

    @abstractmethod
    async def save_all(self, snapshots: list[QuotaSnapshot]) -> None:
        """Persist several snapshots in one transaction."""
