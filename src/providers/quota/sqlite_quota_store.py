"""SQLite-backed quota store.

Persists per-provider API usage to a local SQLite database at
``data/metrics.db`` in an ``ApiMetrics`` table.  Uses ``aiosqlite`` for
async I/O, one connection per operation.
"""

from __future__ import annotations

import sqlite3
from datetime import date
from pathlib import Path

import aiosqlite
import structlog

from src.interfaces.quota_store import IQuotaStore
from src.models.quota import QuotaSnapshot
from src.utils.errors import CacheStorageError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/metrics.db")

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS ApiMetrics (
    ProviderName  TEXT    PRIMARY KEY,
    DailyQuota    INTEGER NOT NULL,
    UsedToday     INTEGER NOT NULL,
    LastResetDate TEXT    NOT NULL
);
"""

_UPSERT_SQL = """\
INSERT INTO ApiMetrics (ProviderName, DailyQuota, UsedToday, LastResetDate)
VALUES (?, ?, ?, ?)
ON CONFLICT(ProviderName)
DO UPDATE SET DailyQuota    = excluded.DailyQuota,
              UsedToday     = excluded.UsedToday,
              LastResetDate = excluded.LastResetDate;
"""

_SELECT_SQL = """\
SELECT ProviderName, DailyQuota, UsedToday, LastResetDate
FROM ApiMetrics
WHERE ProviderName = ?;
"""


def _row_params(snapshot: QuotaSnapshot) -> tuple[str, int, int, str]:
    return (
        snapshot.provider_name,
        snapshot.daily_limit,
        snapshot.used,
        snapshot.last_reset.isoformat(),
    )


class SQLiteQuotaStore(IQuotaStore):
    """SQLite-backed quota persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the ApiMetrics table if it doesn't exist."""
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(_CREATE_TABLE_SQL)
                await db.commit()
        except (sqlite3.Error, OSError) as exc:
            raise CacheStorageError(
                f"Could not initialize metrics database at {self._db_path}: {exc}"
            ) from exc
        logger.info("quota_db_initialized", path=str(self._db_path))

    async def load(self, provider_name: str) -> QuotaSnapshot | None:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(_SELECT_SQL, (provider_name,))
                row = await cursor.fetchone()
        except (sqlite3.Error, OSError) as exc:
            raise CacheStorageError(
                f"Quota read failed: {exc}", provider_name=provider_name
            ) from exc

        if row is None:
            return None
        try:
            last_reset = date.fromisoformat(row[3])
        except (TypeError, ValueError) as exc:
            raise CacheStorageError(
                f"Invalid LastResetDate {row[3]!r}", provider_name=provider_name
            ) from exc
        return QuotaSnapshot(
            provider_name=row[0],
            daily_limit=int(row[1]),
            used=int(row[2]),
            last_reset=last_reset,
        )

    async def save(self, snapshot: QuotaSnapshot) -> None:
        await self.save_all([snapshot])

    async def save_all(self, snapshots: list[QuotaSnapshot]) -> None:
        if not snapshots:
            return
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.executemany(_UPSERT_SQL, [_row_params(s) for s in snapshots])
                await db.commit()
        except (sqlite3.Error, OSError) as exc:
            logger.error("quota_db_write_failed", path=str(self._db_path), error=str(exc))
            raise CacheStorageError(f"Quota write failed: {exc}") from exc
        logger.debug("quota_saved", providers=[s.provider_name for s in snapshots])
