"""Timeout race for a single remote call."""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

from sachain.errors import ErrorCategory

T = TypeVar("T")

# Calls that lost the race; held until they settle so they are not collected.
_abandoned: set[asyncio.Future] = set()


class OperationTimeoutError(TimeoutError):
    """The remote call did not settle in time. Always TRANSIENT and retryable."""

    category = ErrorCategory.TRANSIENT
    retryable = True
    name = "OperationTimeoutError"

    def __init__(self, operation: str, timeout_seconds: float):
        super().__init__(f"Operation '{operation}' timed out after {timeout_seconds}s")
        self.operation = operation
        self.timeout_seconds = timeout_seconds


def _discard_outcome(task: asyncio.Future) -> None:
    _abandoned.discard(task)
    if not task.cancelled():
        # retrieve it so the loop does not report it as never retrieved
        task.exception()


async def run_with_timeout(
    fn: Callable[[], Awaitable[T]],
    timeout_seconds: float | None,
    operation_name: str = "operation",
) -> T:
    """Await `fn()`, giving up after `timeout_seconds`.

    On timeout the call is cancelled but not waited for: however long it
    takes to wind down, its eventual outcome is discarded. `None` disables
    the race.
    """
    if timeout_seconds is None:
        return await fn()

    task = asyncio.ensure_future(fn())
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout_seconds)
    except asyncio.CancelledError:
        task.cancel()
        raise

    if task in done:
        return task.result()

    task.cancel()
    _abandoned.add(task)
    task.add_done_callback(_discard_outcome)
    raise OperationTimeoutError(operation_name, timeout_seconds)
