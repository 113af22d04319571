"""Throttled JSON GET helper used by the recipe providers.

Wraps an injected ``httpx.AsyncClient`` with the three things every external
call in this package needs: a minimum interval between requests, a
caller-level timeout, and translation of every failure mode (network error,
non-success status, malformed JSON, timeout) into :class:`ProviderError`.
Each request sent is recorded on the active
:class:`~src.providers.recipe.call_meter.ExternalCallMeter`.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

import httpx

from src.providers.recipe.call_meter import record_external_call
from src.utils.errors import ProviderError
from src.utils.logging import get_logger

_USER_AGENT = "RecipeHub/0.1.0"


class JsonFetcher:
    """Issue GET requests against one API base URL and decode the JSON body.

    Parameters
    ----------
    http_client:
        Shared client; owned by the caller.
    provider_name:
        Carried on every :class:`ProviderError`.
    base_url:
        Prefix joined with the relative path of each request.
    min_request_interval:
        Seconds to wait between consecutive requests.
    call_timeout:
        Caller-level timeout per request, in seconds.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        provider_name: str,
        base_url: str,
        min_request_interval: float = 0.0,
        call_timeout: float = 20.0,
    ) -> None:
        self._http = http_client
        self._provider_name = provider_name
        self._base_url = base_url if base_url.endswith("/") else base_url + "/"
        self._min_interval = min_request_interval
        self._call_timeout = call_timeout
        self._last_request_time: float = 0.0
        self._throttle_lock = asyncio.Lock()
        self._logger = get_logger(__name__)

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _throttle(self) -> None:
        """Enforce minimum interval between API requests."""
        if self._min_interval <= 0:
            return
        async with self._throttle_lock:
            now = time.monotonic()
            elapsed = now - self._last_request_time
            if self._last_request_time > 0 and elapsed < self._min_interval:
                await asyncio.sleep(self._min_interval - elapsed)
            self._last_request_time = time.monotonic()

    def _error(self, message: str) -> ProviderError:
        return ProviderError(message=message, provider_name=self._provider_name)

    async def get_json(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        *,
        allow_not_found: bool = False,
    ) -> Any:
        """GET ``base_url + path`` and return the decoded JSON body.

        With *allow_not_found* a 404 response returns ``None`` instead of
        raising.

        Raises
        ------
        ProviderError
            On network errors, timeouts, non-success statuses or a body
            that is not JSON.
        """
        url = self._base_url + path.lstrip("/")
        await self._throttle()
        record_external_call()
        try:
            response = await asyncio.wait_for(
                self._http.get(url, params=params, headers={"User-Agent": _USER_AGENT}),
                timeout=self._call_timeout,
            )
        except asyncio.TimeoutError as exc:
            self._logger.warning(
                "provider_request_timeout",
                provider=self._provider_name,
                path=path,
                timeout=self._call_timeout,
            )
            raise self._error(f"Request to {path} timed out after {self._call_timeout}s") from exc
        except httpx.HTTPError as exc:
            self._logger.warning(
                "provider_request_failed",
                provider=self._provider_name,
                path=path,
                error=str(exc),
            )
            raise self._error(f"Request to {path} failed: {exc}") from exc

        if allow_not_found and response.status_code == 404:
            return None
        if response.is_error:
            self._logger.warning(
                "provider_http_error",
                provider=self._provider_name,
                path=path,
                status=response.status_code,
            )
            raise self._error(f"HTTP {response.status_code} from {path}")

        try:
            return response.json()
        except ValueError as exc:
            self._logger.warning(
                "provider_malformed_response",
                provider=self._provider_name,
                path=path,
                error=str(exc),
            )
            raise self._error(f"Malformed JSON from {path}: {exc}") from exc
