"""Unit tests for the call meter, cache-aside helper and JSON fetcher."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest

from src.models.recipe import Recipe
from src.providers.cache.memory_cache import MemoryCacheProvider
from src.providers.recipe.cache_aside import CacheAside, CacheTTLs, normalize_key_part
from src.providers.recipe.call_meter import (
    ExternalCallMeter,
    current_meter,
    record_external_call,
)
from src.providers.recipe.http_fetcher import JsonFetcher
from src.utils.concurrency import throttled_gather
from src.utils.errors import ProviderError
from tests.conftest import mock_http_client


# ======================================================================
# ExternalCallMeter
# ======================================================================


class TestExternalCallMeter:
    def test_record_without_meter_is_noop(self) -> None:
        assert current_meter() is None
        record_external_call()

    def test_counts_calls_inside_block(self) -> None:
        with ExternalCallMeter() as meter:
            record_external_call()
            record_external_call(2)
        record_external_call()
        assert meter.count == 3
        assert current_meter() is None

    def test_nested_meters_restore_outer(self) -> None:
        with ExternalCallMeter() as outer:
            record_external_call()
            with ExternalCallMeter() as inner:
                record_external_call()
            record_external_call()
        assert outer.count == 2
        assert inner.count == 1

    @pytest.mark.asyncio
    async def test_gathered_tasks_share_the_meter(self) -> None:
        async def _call() -> None:
            await asyncio.sleep(0)
            record_external_call()

        with ExternalCallMeter() as meter:
            await asyncio.gather(_call(), _call(), _call())
        assert meter.count == 3


# ======================================================================
# CacheAside
# ======================================================================


class TestCacheAside:
    def test_key_is_namespaced_and_normalised(self, memory_cache: MemoryCacheProvider) -> None:
        aside = CacheAside(memory_cache, "themealdb")
        assert aside.key("search", "  Chicken ", 10) == "themealdb:search:chicken:10"
        assert aside.key("categories") == "themealdb:categories"

    def test_normalize_key_part(self) -> None:
        assert normalize_key_part(" Beef Wellington ") == "beef wellington"
        assert normalize_key_part(42) == "42"

    def test_default_ttls(self) -> None:
        ttls = CacheTTLs()
        assert ttls.catalog.days == 30
        assert ttls.recipe.days == 7
        assert ttls.search.days == 1

    @pytest.mark.asyncio
    async def test_fetch_loads_once(
        self, memory_cache: MemoryCacheProvider, sample_recipe: Recipe
    ) -> None:
        aside = CacheAside(memory_cache, "themealdb")
        loader = AsyncMock(return_value=sample_recipe)

        first = await aside.fetch("k", loader, CacheTTLs().recipe, Recipe)
        second = await aside.fetch("k", loader, CacheTTLs().recipe, Recipe)

        assert first == second == sample_recipe
        loader.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_none_result_is_not_stored(self, memory_cache: MemoryCacheProvider) -> None:
        aside = CacheAside(memory_cache, "themealdb")
        loader = AsyncMock(return_value=None)

        assert await aside.fetch("k", loader, CacheTTLs().recipe, Recipe) is None
        assert await aside.fetch("k", loader, CacheTTLs().recipe, Recipe) is None
        assert loader.await_count == 2
        assert await memory_cache.exists("k") is False

    @pytest.mark.asyncio
    async def test_empty_list_is_stored(self, memory_cache: MemoryCacheProvider) -> None:
        aside = CacheAside(memory_cache, "themealdb")
        loader = AsyncMock(return_value=[])

        await aside.fetch("k", loader, CacheTTLs().search, list[Recipe])
        assert await aside.fetch("k", loader, CacheTTLs().search, list[Recipe]) == []
        loader.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_loader_error_propagates_and_writes_nothing(
        self, memory_cache: MemoryCacheProvider
    ) -> None:
        aside = CacheAside(memory_cache, "themealdb")
        loader = AsyncMock(side_effect=ProviderError("boom", provider_name="themealdb"))

        with pytest.raises(ProviderError):
            await aside.fetch("k", loader, CacheTTLs().search, list[Recipe])
        assert await memory_cache.exists("k") is False


# ======================================================================
# JsonFetcher
# ======================================================================


class TestJsonFetcher:
    @pytest.mark.asyncio
    async def test_get_json_decodes_body_and_records_call(self) -> None:
        client, transport = mock_http_client(
            lambda request: httpx.Response(200, json={"ok": True})
        )
        fetcher = JsonFetcher(client, "themealdb", "https://example.test/api")

        with ExternalCallMeter() as meter:
            payload = await fetcher.get_json("search.php", {"s": "curry"})

        assert payload == {"ok": True}
        assert meter.count == 1
        request = transport.requests[0]
        assert str(request.url) == "https://example.test/api/search.php?s=curry"
        assert request.headers["User-Agent"].startswith("RecipeHub/")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_http_error_status_raises_provider_error(self) -> None:
        client, _ = mock_http_client(lambda request: httpx.Response(402, json={}))
        fetcher = JsonFetcher(client, "spoonacular", "https://example.test/")

        with pytest.raises(ProviderError) as exc_info:
            await fetcher.get_json("recipes/random")
        assert exc_info.value.provider_name == "spoonacular"
        assert "402" in str(exc_info.value)
        await client.aclose()

    @pytest.mark.asyncio
    async def test_not_found_allowed_returns_none(self) -> None:
        client, _ = mock_http_client(lambda request: httpx.Response(404))
        fetcher = JsonFetcher(client, "spoonacular", "https://example.test/")

        assert await fetcher.get_json("recipes/1/information", allow_not_found=True) is None
        with pytest.raises(ProviderError):
            await fetcher.get_json("recipes/1/information")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_malformed_json_raises_provider_error(self) -> None:
        client, _ = mock_http_client(lambda request: httpx.Response(200, text="<html>"))
        fetcher = JsonFetcher(client, "themealdb", "https://example.test/")

        with pytest.raises(ProviderError, match="Malformed JSON"):
            await fetcher.get_json("search.php")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_network_error_raises_provider_error(self) -> None:
        def _fail(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client, _ = mock_http_client(_fail)
        fetcher = JsonFetcher(client, "themealdb", "https://example.test/")

        with ExternalCallMeter() as meter:
            with pytest.raises(ProviderError, match="failed"):
                await fetcher.get_json("search.php")
        # The attempt is charged even though it failed.
        assert meter.count == 1
        await client.aclose()

    @pytest.mark.asyncio
    async def test_timeout_raises_provider_error(self) -> None:
        async def _slow_get(*args, **kwargs) -> httpx.Response:
            await asyncio.sleep(1)
            return httpx.Response(200, json={})

        client = AsyncMock(spec=httpx.AsyncClient)
        client.get.side_effect = _slow_get
        fetcher = JsonFetcher(client, "themealdb", "https://example.test/", call_timeout=0.01)

        with pytest.raises(ProviderError, match="timed out"):
            await fetcher.get_json("search.php")

    @pytest.mark.asyncio
    async def test_throttle_spaces_requests(self) -> None:
        client, _ = mock_http_client(lambda request: httpx.Response(200, json={}))
        fetcher = JsonFetcher(
            client, "spoonacular", "https://example.test/", min_request_interval=0.05
        )

        loop = asyncio.get_running_loop()
        start = loop.time()
        await fetcher.get_json("a")
        await fetcher.get_json("b")
        assert loop.time() - start >= 0.04
        await client.aclose()


# ======================================================================
# throttled_gather
# ======================================================================


class TestThrottledGather:
    @pytest.mark.asyncio
    async def test_results_keep_input_order(self) -> None:
        async def _value(n: int) -> int:
            await asyncio.sleep(0.01 * (3 - n))
            return n

        assert await throttled_gather([_value(n) for n in range(3)], limit=2) == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_limit_bounds_in_flight(self) -> None:
        in_flight = 0
        peak = 0

        async def _lookup() -> None:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1

        await throttled_gather([_lookup() for _ in range(10)], limit=3)
        assert peak == 3

    @pytest.mark.asyncio
    async def test_first_failure_cancels_pending_lookups(self) -> None:
        started = asyncio.Event()
        finished: list[int] = []

        async def _lookup(n: int) -> None:
            started.set()
            await asyncio.sleep(0.05)
            finished.append(n)

        async def _failing() -> None:
            await started.wait()
            raise ProviderError(message="HTTP 500", provider_name="themealdb")

        with pytest.raises(ProviderError):
            await throttled_gather([_lookup(0), _failing(), _lookup(1), _lookup(2)], limit=2)

        # Nothing keeps running once the failure has propagated.
        await asyncio.sleep(0.2)
        assert finished == []

    @pytest.mark.asyncio
    async def test_return_exceptions_collects_failures(self) -> None:
        async def _ok() -> str:
            return "ok"

        async def _fail() -> str:
            raise ProviderError(message="boom", provider_name="spoonacular")

        results = await throttled_gather([_ok(), _fail()], return_exceptions=True)
        assert results[0] == "ok"
        assert isinstance(results[1], ProviderError)
