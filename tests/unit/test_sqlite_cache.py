"""Unit tests for SQLiteCacheProvider."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import pytest_asyncio

from src.models.recipe import Recipe
from src.providers.cache.sqlite_cache import (
    SQLiteCacheProvider,
    format_timestamp,
    parse_timestamp,
)
from src.utils.errors import CacheStorageError, DeserializationError, InvalidArgumentError
from tests.conftest import FakeClock


def _rows(db_path: Path) -> list[tuple[str, str, str | None]]:
    conn = sqlite3.connect(str(db_path))
    try:
        return conn.execute(
            "SELECT Key, Value, ExpirationTime FROM CacheItems ORDER BY Key"
        ).fetchall()
    finally:
        conn.close()


def _raw_write(db_path: Path, key: str, value: str, expiration: str | None) -> None:
    conn = sqlite3.connect(str(db_path))
    try:
        conn.execute(
            "INSERT OR REPLACE INTO CacheItems (Key, Value, ExpirationTime) VALUES (?, ?, ?)",
            (key, value, expiration),
        )
        conn.commit()
    finally:
        conn.close()


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "nested" / "cache.db"


@pytest_asyncio.fixture
async def cache(db_path: Path, clock: FakeClock) -> SQLiteCacheProvider:
    provider = SQLiteCacheProvider(db_path=db_path, clock=clock)
    await provider.initialize()
    return provider


# ======================================================================
# Timestamp helpers
# ======================================================================


class TestTimestamps:
    def test_format_is_fixed_width_utc(self) -> None:
        moment = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert format_timestamp(moment) == "2024-01-02T03:04:05.000000+00:00"

    def test_naive_datetime_treated_as_utc(self) -> None:
        assert format_timestamp(datetime(2024, 1, 2)) == "2024-01-02T00:00:00.000000+00:00"

    def test_parse_round_trips(self) -> None:
        moment = datetime(2024, 1, 2, 3, 4, 5, 678, tzinfo=timezone.utc)
        assert parse_timestamp(format_timestamp(moment)) == moment

    def test_lexical_order_matches_chronological(self) -> None:
        earlier = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        later = earlier + timedelta(microseconds=1)
        assert format_timestamp(earlier) < format_timestamp(later)


# ======================================================================
# Basic operations
# ======================================================================


class TestSQLiteCacheBasics:
    @pytest.mark.asyncio
    async def test_initialize_creates_parent_directory(self, cache: SQLiteCacheProvider) -> None:
        assert cache.db_path.exists()

    @pytest.mark.asyncio
    async def test_get_missing_key_returns_none(self, cache: SQLiteCacheProvider) -> None:
        assert await cache.get("nonexistent") is None

    @pytest.mark.asyncio
    async def test_set_and_get(self, cache: SQLiteCacheProvider) -> None:
        await cache.set("key1", {"name": "Arrabiata"})
        assert await cache.get("key1") == {"name": "Arrabiata"}

    @pytest.mark.asyncio
    async def test_typed_get(self, cache: SQLiteCacheProvider, sample_recipe: Recipe) -> None:
        await cache.set("recipe", sample_recipe, ttl=60)
        assert await cache.get("recipe", Recipe) == sample_recipe

    @pytest.mark.asyncio
    async def test_set_overwrites_value_and_expiry(
        self, cache: SQLiteCacheProvider, db_path: Path
    ) -> None:
        await cache.set("key1", "old", ttl=10)
        await cache.set("key1", "new")
        rows = _rows(db_path)
        assert rows == [("key1", '"new"', None)]

    @pytest.mark.asyncio
    async def test_set_none_raises(self, cache: SQLiteCacheProvider, db_path: Path) -> None:
        with pytest.raises(InvalidArgumentError):
            await cache.set("key1", None)
        assert _rows(db_path) == []

    @pytest.mark.asyncio
    async def test_entries_survive_a_new_instance(
        self, cache: SQLiteCacheProvider, db_path: Path, clock: FakeClock
    ) -> None:
        await cache.set("key1", [1, 2, 3], ttl=3600)
        reopened = SQLiteCacheProvider(db_path=db_path, clock=clock)
        assert await reopened.get("key1") == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_remove(self, cache: SQLiteCacheProvider) -> None:
        await cache.set("key1", "value1")
        assert await cache.remove("key1") is True
        assert await cache.remove("key1") is False

    @pytest.mark.asyncio
    async def test_clear(self, cache: SQLiteCacheProvider, db_path: Path) -> None:
        await cache.set("a", 1)
        await cache.set("b", 2, ttl=5)
        await cache.clear()
        assert _rows(db_path) == []

    def test_provider_name(self, tmp_path: Path) -> None:
        assert SQLiteCacheProvider(db_path=tmp_path / "c.db").get_provider_name() == "sqlite"


# ======================================================================
# Expiry and sweeping
# ======================================================================


class TestSQLiteCacheExpiry:
    @pytest.mark.asyncio
    async def test_entry_expires_exactly_at_ttl(
        self, cache: SQLiteCacheProvider, clock: FakeClock
    ) -> None:
        await cache.set("key1", "value1", ttl=60)
        clock.advance(seconds=59)
        assert await cache.get("key1") == "value1"
        clock.advance(seconds=1)
        assert await cache.get("key1") is None

    @pytest.mark.asyncio
    async def test_expired_read_deletes_row(
        self, cache: SQLiteCacheProvider, clock: FakeClock, db_path: Path
    ) -> None:
        await cache.set("key1", "value1", ttl=1)
        await cache.set("key2", "value2")
        clock.advance(seconds=2)
        assert await cache.exists("key1") is False
        assert [row[0] for row in _rows(db_path)] == ["key2"]

    @pytest.mark.asyncio
    async def test_sweep_removes_only_expired_entries(
        self, cache: SQLiteCacheProvider, clock: FakeClock, db_path: Path
    ) -> None:
        await cache.set("short", 1, ttl=10)
        await cache.set("boundary", 2, ttl=20)
        await cache.set("long", 3, ttl=3600)
        await cache.set("forever", 4)
        clock.advance(seconds=20)

        removed = await cache.sweep_expired()

        assert removed == 2
        assert [row[0] for row in _rows(db_path)] == ["forever", "long"]

    @pytest.mark.asyncio
    async def test_sweep_on_empty_cache(self, cache: SQLiteCacheProvider) -> None:
        assert await cache.sweep_expired() == 0


# ======================================================================
# Failure modes
# ======================================================================


class TestSQLiteCacheFailures:
    @pytest.mark.asyncio
    async def test_corrupt_payload_raises_instead_of_miss(
        self, cache: SQLiteCacheProvider, db_path: Path
    ) -> None:
        _raw_write(db_path, "key1", "{not json", None)
        with pytest.raises(DeserializationError):
            await cache.get("key1")

    @pytest.mark.asyncio
    async def test_invalid_expiry_text_raises(
        self, cache: SQLiteCacheProvider, db_path: Path
    ) -> None:
        _raw_write(db_path, "key1", '"value"', "yesterday")
        with pytest.raises(DeserializationError):
            await cache.get("key1")

    @pytest.mark.asyncio
    async def test_missing_table_raises_storage_error(self, tmp_path: Path) -> None:
        provider = SQLiteCacheProvider(db_path=tmp_path / "uninitialized.db")
        with pytest.raises(CacheStorageError):
            await provider.get("key1")

    @pytest.mark.asyncio
    async def test_write_without_table_raises_storage_error(self, tmp_path: Path) -> None:
        provider = SQLiteCacheProvider(db_path=tmp_path / "uninitialized.db")
        with pytest.raises(CacheStorageError):
            await provider.set("key1", "value1")
