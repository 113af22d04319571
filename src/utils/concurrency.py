"""Bounded-concurrency gather used for per-recipe detail lookups.

TheMealDB's filter endpoints and Spoonacular's ingredient search return
partial records, so each hit needs a follow-up lookup by id.
:func:`throttled_gather` runs those lookups concurrently while keeping at
most ``limit`` requests in flight against the remote API.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

_T = TypeVar("_T")

_DEFAULT_LIMIT = 4


async def throttled_gather(
    coros: list[Awaitable[_T]],
    semaphore: asyncio.Semaphore | None = None,
    limit: int = _DEFAULT_LIMIT,
    return_exceptions: bool = False,
) -> list[_T | BaseException]:
    """Run awaitables concurrently with semaphore throttling.

    Parameters
    ----------
    coros:
        Awaitable objects to execute concurrently.
    semaphore:
        Optional shared semaphore.  When omitted a fresh one allowing
        *limit* concurrent awaitables is created for this call, so no
        semaphore outlives the event loop it was used on.
    limit:
        Concurrency bound used when *semaphore* is not given.
    return_exceptions:
        Mirrors ``asyncio.gather``.  With the default ``False`` the first
        exception propagates and the awaitables still pending are cancelled
        before it is re-raised.

    Returns
    -------
    list
        Results in the same order as the input awaitables.
    """
    if semaphore is None:
        semaphore = asyncio.Semaphore(max(1, limit))

    async def _wrapped(coro: Awaitable[_T]) -> _T:
        async with semaphore:
            return await coro

    tasks = [asyncio.ensure_future(_wrapped(c)) for c in coros]
    try:
        return await asyncio.gather(*tasks, return_exceptions=return_exceptions)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        # Awaitables queued behind the semaphore were never started.
        for coro in coros:
            if asyncio.iscoroutine(coro):
                coro.close()
        raise
