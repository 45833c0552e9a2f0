"""Bounded-Concurrency Fan-Out

Processes items in fixed-size windows: every call in a window runs
concurrently, and the next window starts only after the whole current
window has settled. Results come back in input order, one per item, with
failures captured rather than raised.
"""
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Sequence, TypeVar

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class WindowItemResult(Generic[U]):
    """Outcome for a single item."""
    index: int
    value: U | None
    error: BaseException | None
    duration_ms: float

    @property
    def ok(self) -> bool:
        return self.error is None


def chunk(items: Sequence[T], size: int) -> list[Sequence[T]]:
    """Split into consecutive windows of at most `size` items."""
    if size < 1:
        raise ValueError(f"window size must be at least 1, got {size}")
    return [items[i:i + size] for i in range(0, len(items), size)]


async def windowed_gather(
    items: Sequence[T],
    fn: Callable[[T], Awaitable[U]],
    window_size: int = 5,
) -> list[WindowItemResult[U]]:
    """Run `fn` over `items`, at most `window_size` in flight at once.

    Usage:
        results = await windowed_gather(entries, publisher.publish_one, 5)
        failed = [r.index for r in results if not r.ok]
    """
    async def run_one(index: int, item: T) -> WindowItemResult[U]:
        start = time.monotonic()
        try:
            value = await fn(item)
        except Exception as e:
            return WindowItemResult(
                index=index,
                value=None,
                error=e,
                duration_ms=(time.monotonic() - start) * 1000,
            )
        return WindowItemResult(
            index=index,
            value=value,
            error=None,
            duration_ms=(time.monotonic() - start) * 1000,
        )

    results: list[WindowItemResult[U]] = []
    offset = 0
    for window in chunk(items, window_size):
        settled = await asyncio.gather(
            *(run_one(offset + i, item) for i, item in enumerate(window))
        )
        results.extend(settled)
        offset += len(window)
    return results
