"""Bounded fan-out for batch ingestion.

``windowed_gather`` processes a list of coroutine factories in fixed
windows.  Every call in a window starts together and the whole window
must settle (success or failure, independently) before the next window
starts: no more than ``window_size`` items are ever running, and one
failure never cancels its siblings.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

import structlog

from src.utils.logging import get_logger

_T = TypeVar("_T")

_logger: structlog.BoundLogger = get_logger(__name__)


async def windowed_gather(
    factories: list[Callable[[], Awaitable[_T]]],
    window_size: int,
) -> list[_T | BaseException]:
    """Run coroutine factories in windows of ``window_size`` with settle-all semantics.

    Factories (not coroutines) are accepted so that no work begins before
    its window opens.

    Parameters
    ----------
    factories:
        Zero-argument callables returning awaitables, in input order.
    window_size:
        Maximum number of awaitables in flight; must be >= 1.

    Returns
    -------
    list[_T | BaseException]
        One entry per factory in input order -- either the result or the
        exception that factory's awaitable raised.
    """
    if window_size < 1:
        raise ValueError("window_size must be >= 1")

    results: list[_T | BaseException] = []
    for start in range(0, len(factories), window_size):
        window = factories[start : start + window_size]
        settled = await asyncio.gather(
            *(factory() for factory in window),
            return_exceptions=True,
        )
        failures = sum(1 for r in settled if isinstance(r, BaseException))
        _logger.debug(
            "batch_window_settled",
            window_start=start,
            window_size=len(window),
            failures=failures,
        )
        results.extend(settled)
    return results
