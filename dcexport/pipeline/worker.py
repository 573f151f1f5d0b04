"""Ordered, bounded-concurrency mapping over an async stream."""

import asyncio
from collections import deque
from typing import AsyncIterable, AsyncIterator, Awaitable, Callable, Deque, TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def ordered_map(
    source: AsyncIterable[T],
    func: Callable[[T], Awaitable[R]],
    concurrency: int = 1,
) -> AsyncIterator[R]:
    """Apply `func` to every item of `source`, yielding results in source order.

    At most `concurrency` calls are in flight. With the default of 1 the next
    item is not pulled from the source until the current call has finished.
    The first exception cancels the calls still in flight and propagates.

    Args:
        source: Items to process
        func: Coroutine function applied to each item
        concurrency: Maximum number of outstanding calls
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be >= 1, got {concurrency}")

    pending: Deque[asyncio.Task] = deque()
    try:
        async for item in source:
            pending.append(asyncio.ensure_future(func(item)))
            if len(pending) >= concurrency:
                yield await pending.popleft()
        while pending:
            yield await pending.popleft()
    finally:
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
