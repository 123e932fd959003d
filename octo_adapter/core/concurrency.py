from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


async def gather_bounded(
    items: Sequence[T],
    worker: Callable[[T, int], Awaitable[R]],
    concurrency: int = 3,
    on_error: Callable[[int, BaseException], Any] | None = None,
) -> list[R]:
    """
    Run ``worker(item, index)`` for every item with at most ``concurrency`` in flight.

    Results come back in input order whatever the completion order. Every item runs
    to completion even when another one fails. Failures are then either handed to
    ``on_error(index, exc)``, whose return value takes the item's place, or the first
    failure (by input position) is raised for the whole batch.
    """
    if concurrency < 1:
        raise ValueError("concurrency must be >= 1")

    semaphore = asyncio.Semaphore(concurrency)

    async def run(item: T, ix: int) -> R:
        async with semaphore:
            return await worker(item, ix)

    results = await asyncio.gather(
        *(run(item, ix) for ix, item in enumerate(items)),
        return_exceptions=True,
    )

    out: list[Any] = []
    for ix, result in enumerate(results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception) or on_error is None:
                raise result
            logger.warning("Fan-out item %s failed: %s", ix, result)
            out.append(on_error(ix, result))
        else:
            out.append(result)
    return out
