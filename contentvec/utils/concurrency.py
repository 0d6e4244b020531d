"""Bounded-concurrency helpers for indexing runs.

The Indexer fans out one coroutine per (item, field) unit.  Unbounded
fan-out would burst the embedding provider and exhaust the database pool,
so every unit acquires a semaphore first.

**throttled_gather** is a drop-in replacement for ``asyncio.gather`` that
wraps each awaitable in a semaphore acquire/release.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

_T = TypeVar("_T")


async def throttled_gather(
    coros: list[Awaitable[_T]],
    semaphore: asyncio.Semaphore | None = None,
    limit: int = 4,
    return_exceptions: bool = True,
) -> list[_T | BaseException]:
    """Run awaitables concurrently, at most *limit* (or the semaphore's value) at once.

    Parameters
    ----------
    coros:
        Awaitable objects to execute concurrently.
    semaphore:
        Optional shared semaphore.  When omitted a fresh one sized *limit*
        is created for this call.
    limit:
        Concurrency bound used when no semaphore is supplied.
    return_exceptions:
        If ``True``, exceptions are returned in the results list rather
        than being raised.  Mirrors ``asyncio.gather`` semantics.

    Returns
    -------
    list[_T | BaseException]
        Results in the same order as the input coroutines.
    """
    if semaphore is None:
        semaphore = asyncio.Semaphore(max(1, limit))

    async def _wrapped(coro: Awaitable[_T]) -> _T:
        async with semaphore:
            return await coro

    tasks = [_wrapped(c) for c in coros]
    return await asyncio.gather(*tasks, return_exceptions=return_exceptions)
