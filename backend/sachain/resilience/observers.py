"""Retry Observers

The scheduler reports attempts and retry decisions through an injected
observer instead of logging itself. `log_retry_event` is the default
observer and turns events into structured log lines.
"""
from __future__ import annotations

import asyncio
import functools
import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Literal, Union

from sachain.logging import retry_logger

RetryEventKind = Literal["attempt_failed", "retry", "success", "failure"]


@dataclass(frozen=True, slots=True)
class RetryEvent:
    """Structured fields of one scheduler event."""
    kind: RetryEventKind
    operation: str
    attempt: int
    max_retries: int
    delay: float = 0.0
    error_name: str | None = None
    error_message: str | None = None
    total_delay: float = 0.0

    def fields(self) -> dict:
        return {
            "operation": self.operation,
            "attempt": self.attempt,
            "max_retries": self.max_retries,
            "delay_seconds": round(self.delay, 4),
            "error_name": self.error_name,
            "error_message": self.error_message,
        }


RetryObserver = Callable[[RetryEvent], Union[Awaitable[None], None]]


def log_retry_event(event: RetryEvent) -> None:
    log = retry_logger()
    if event.kind == "attempt_failed":
        log.warning("operation_attempt_failed", **event.fields())
    elif event.kind == "retry":
        log.warning("operation_retry_scheduled", **event.fields())
    elif event.kind == "success":
        if event.attempt > 1:
            log.info(
                "operation_succeeded_after_retries",
                operation=event.operation,
                attempts=event.attempt,
                total_delay_seconds=round(event.total_delay, 4),
            )
    else:
        log.error("operation_failed", total_delay_seconds=round(event.total_delay, 4), **event.fields())


# Observer coroutines still running; held so they are not collected mid-flight.
_pending: set[asyncio.Future] = set()


def _observer_done(kind: str, operation: str, future: asyncio.Future) -> None:
    _pending.discard(future)
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        retry_logger().warning(
            "observer_failed",
            operation=operation,
            kind=kind,
            exc_info=exc,
        )


def notify(observer: Callable[[Any], Any] | None, event: Any) -> None:
    """Deliver an event without waiting on the observer.

    Synchronous observers run inline. An awaitable returned by the observer
    is scheduled on the running loop and never awaited here. A failing
    observer never changes the outcome.
    """
    if observer is None:
        return
    try:
        maybe_awaitable = observer(event)
        if inspect.isawaitable(maybe_awaitable):
            future = asyncio.ensure_future(maybe_awaitable)
            _pending.add(future)
            future.add_done_callback(
                functools.partial(_observer_done, event.kind, event.operation)
            )
    except Exception:
        retry_logger().warning(
            "observer_failed",
            operation=event.operation,
            kind=event.kind,
            exc_info=True,
        )
