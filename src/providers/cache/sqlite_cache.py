"""SQLite-backed cache provider.

Persists cache entries to a single local SQLite file (``data/cache.db`` by
default) using ``aiosqlite`` for async I/O.  Every operation opens its own
connection and runs one statement in one implicit transaction, so no caller
holds a connection that could block another.

Expiry instants are stored as ISO-8601 UTC text with fixed microsecond
precision, which keeps lexical and chronological order identical and lets
:meth:`SQLiteCacheProvider.sweep_expired` compare them inside SQL.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

import aiosqlite
import structlog

from src.interfaces.cache_provider import TTL, ICacheProvider, ttl_to_timedelta
from src.models.cache import CacheEntry
from src.utils.errors import CacheStorageError, DeserializationError
from src.utils.serialization import decode_value, encode_value

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/cache.db")

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS CacheItems (
    Key            TEXT PRIMARY KEY,
    Value          TEXT NOT NULL,
    ExpirationTime TEXT NULL
);
"""

_CREATE_INDEX_SQL = (
    "CREATE INDEX IF NOT EXISTS idx_cacheitems_expiration ON CacheItems(ExpirationTime);"
)

_UPSERT_SQL = """\
INSERT INTO CacheItems (Key, Value, ExpirationTime)
VALUES (?, ?, ?)
ON CONFLICT(Key)
DO UPDATE SET Value          = excluded.Value,
              ExpirationTime = excluded.ExpirationTime;
"""

_SELECT_SQL = "SELECT Key, Value, ExpirationTime FROM CacheItems WHERE Key = ?;"

# Lazy eviction deletes only the expired row it observed, never a racing fresh write.
_EVICT_SQL = "DELETE FROM CacheItems WHERE Key = ? AND ExpirationTime = ?;"

_DELETE_SQL = "DELETE FROM CacheItems WHERE Key = ?;"

_CLEAR_SQL = "DELETE FROM CacheItems;"

_SWEEP_SQL = (
    "DELETE FROM CacheItems WHERE ExpirationTime IS NOT NULL AND ExpirationTime <= ?;"
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """Render *moment* as fixed-width ISO-8601 UTC text."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_timestamp(raw: str) -> datetime:
    """Parse text written by :func:`format_timestamp` (or any ISO-8601 form)."""
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class SQLiteCacheProvider(ICacheProvider):
    """Durable cache persisted in a single SQLite file.

    Parameters
    ----------
    db_path:
        Location of the database file.  Parent directories are created by
        :meth:`initialize`.
    clock:
        Returns the current UTC time.  Injected by tests.
    """

    def __init__(
        self,
        db_path: str | Path = _DEFAULT_DB_PATH,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._db_path = Path(db_path)
        self._clock = clock

    @property
    def db_path(self) -> Path:
        return self._db_path

    async def initialize(self) -> None:
        """Create the cache table and expiry index if they don't exist."""
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(_CREATE_TABLE_SQL)
                await db.execute(_CREATE_INDEX_SQL)
                await db.commit()
        except (sqlite3.Error, OSError) as exc:
            raise CacheStorageError(
                f"Could not initialize cache database at {self._db_path}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("cache_db_initialized", path=str(self._db_path))

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _execute(self, sql: str, params: tuple[Any, ...] = ()) -> int:
        """Run one write statement on a fresh connection; return affected rows."""
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(sql, params)
                await db.commit()
                return cursor.rowcount
        except (sqlite3.Error, OSError) as exc:
            logger.error("cache_db_write_failed", path=str(self._db_path), error=str(exc))
            raise CacheStorageError(
                f"Cache write failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def _fetch_entry(self, key: str) -> tuple[CacheEntry, str | None] | None:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(_SELECT_SQL, (key,))
                row = await cursor.fetchone()
        except (sqlite3.Error, OSError) as exc:
            logger.error("cache_db_read_failed", path=str(self._db_path), error=str(exc))
            raise CacheStorageError(
                f"Cache read failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if row is None:
            return None
        raw_expiry = row[2]
        try:
            expires_at = parse_timestamp(raw_expiry) if raw_expiry is not None else None
        except ValueError as exc:
            raise DeserializationError(
                f"Invalid expiration time {raw_expiry!r} stored for {key!r}",
                provider_name=self.get_provider_name(),
                key=key,
            ) from exc
        return CacheEntry(key=row[0], serialized_value=row[1], expires_at=expires_at), raw_expiry

    async def _live_entry(self, key: str) -> CacheEntry | None:
        """Return the unexpired entry for *key*, evicting it if expired."""
        now = self._clock()
        found = await self._fetch_entry(key)
        if found is None:
            return None
        entry, raw_expiry = found
        if entry.is_expired(now):
            await self._execute(_EVICT_SQL, (key, raw_expiry))
            logger.debug("cache_expired", key=key, backend=self.get_provider_name())
            return None
        return entry

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    async def get(self, key: str, value_type: Any = None) -> Any | None:
        entry = await self._live_entry(key)
        if entry is None:
            logger.debug("cache_miss", key=key)
            return None
        logger.debug("cache_hit", key=key)
        return decode_value(entry.serialized_value, value_type, key=key)

    async def set(self, key: str, value: Any, ttl: TTL = None) -> None:
        payload = encode_value(value)
        delta = ttl_to_timedelta(ttl)
        expiration = format_timestamp(self._clock() + delta) if delta is not None else None
        await self._execute(_UPSERT_SQL, (key, payload, expiration))
        logger.debug("cache_set", key=key, expires_at=expiration)

    async def remove(self, key: str) -> bool:
        removed = await self._execute(_DELETE_SQL, (key,)) > 0
        logger.debug("cache_remove", key=key, removed=removed)
        return removed

    async def exists(self, key: str) -> bool:
        return await self._live_entry(key) is not None

    async def clear(self) -> None:
        removed = await self._execute(_CLEAR_SQL)
        logger.info("cache_cleared", backend=self.get_provider_name(), removed=removed)

    async def sweep_expired(self) -> int:
        """Delete every entry whose expiry instant has passed, in one statement.

        Returns
        -------
        int
            Number of entries removed.
        """
        cutoff = format_timestamp(self._clock())
        removed = await self._execute(_SWEEP_SQL, (cutoff,))
        logger.info("cache_swept", removed=removed, cutoff=cutoff)
        return removed

    def get_provider_name(self) -> str:
        return "sqlite"
