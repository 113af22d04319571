"""Unit tests for SQLiteQuotaStore."""

from __future__ import annotations

import sqlite3
from datetime import date
from pathlib import Path

import pytest
import pytest_asyncio

from src.models.quota import QuotaSnapshot
from src.providers.quota.sqlite_quota_store import SQLiteQuotaStore
from src.utils.errors import CacheStorageError


@pytest_asyncio.fixture
async def store(tmp_path: Path) -> SQLiteQuotaStore:
    """Create and initialize a store with a temp DB."""
    quota_store = SQLiteQuotaStore(db_path=tmp_path / "data" / "metrics.db")
    await quota_store.initialize()
    return quota_store


class TestSQLiteQuotaStore:
    @pytest.mark.asyncio
    async def test_load_unknown_provider(self, store: SQLiteQuotaStore) -> None:
        assert await store.load("spoonacular") is None

    @pytest.mark.asyncio
    async def test_save_and_load(self, store: SQLiteQuotaStore) -> None:
        snapshot = QuotaSnapshot("spoonacular", 150, 42, date(2024, 6, 1))
        await store.save(snapshot)
        assert await store.load("spoonacular") == snapshot

    @pytest.mark.asyncio
    async def test_save_replaces_existing_row(self, store: SQLiteQuotaStore) -> None:
        await store.save(QuotaSnapshot("spoonacular", 150, 42, date(2024, 6, 1)))
        await store.save(QuotaSnapshot("spoonacular", 200, 0, date(2024, 6, 2)))
        assert await store.load("spoonacular") == QuotaSnapshot(
            "spoonacular", 200, 0, date(2024, 6, 2)
        )

    @pytest.mark.asyncio
    async def test_save_all(self, store: SQLiteQuotaStore) -> None:
        snapshots = [
            QuotaSnapshot("spoonacular", 150, 3, date(2024, 6, 1)),
            QuotaSnapshot("themealdb", 1000, 0, date(2024, 6, 1)),
        ]
        await store.save_all(snapshots)
        assert await store.load("spoonacular") == snapshots[0]
        assert await store.load("themealdb") == snapshots[1]

    @pytest.mark.asyncio
    async def test_save_all_empty_is_noop(self, store: SQLiteQuotaStore) -> None:
        await store.save_all([])

    @pytest.mark.asyncio
    async def test_corrupt_date_raises(self, tmp_path: Path, store: SQLiteQuotaStore) -> None:
        conn = sqlite3.connect(str(tmp_path / "data" / "metrics.db"))
        conn.execute("INSERT INTO ApiMetrics VALUES ('spoonacular', 150, 1, 'not-a-date')")
        conn.commit()
        conn.close()

        with pytest.raises(CacheStorageError) as exc_info:
            await store.load("spoonacular")
        assert exc_info.value.provider_name == "spoonacular"

    @pytest.mark.asyncio
    async def test_uninitialized_store_raises(self, tmp_path: Path) -> None:
        store = SQLiteQuotaStore(db_path=tmp_path / "empty.db")
        with pytest.raises(CacheStorageError):
            await store.save(QuotaSnapshot("spoonacular", 150, 1, date(2024, 6, 1)))
