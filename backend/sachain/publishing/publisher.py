"""Reliable Event Publisher

Wraps a single "send one message" call with a timeout race and the retry
policy, interprets in-band failure responses from the bus, and offers a
bounded-concurrency batch publish.

`publish_one` is strict and raises `PublishError` on terminal failure;
`publish_batch` is permissive and reports every entry in the result list.
Delivery is at-least-once: a retry after a lost acknowledgement can
deliver a message twice.
"""
from __future__ import annotations

import asyncio
import random
import time
from typing import Awaitable, Callable, Sequence

from sachain.errors import ErrorClassifier
from sachain.resilience import (
    RetryConfig,
    RetryError,
    RetryObserver,
    RetryPolicy,
    log_retry_event,
    notify,
    run_with_timeout,
    windowed_gather,
)

from .models import (
    EventSender,
    InBandPublishFailure,
    PublishEntry,
    PublishError,
    PublishResult,
    SendResponse,
)
from .observers import PublishEvent, PublishObserver, log_publish_event

DEFAULT_CONCURRENCY_LIMIT = 5
DEFAULT_TIMEOUT_SECONDS = 10.0


class ReliablePublisher:
    """Publishes entries to an event bus with retry, timeout and batching.

    Usage:
        publisher = ReliablePublisher(EventBridgeSender("kyc-bus"))
        result = await publisher.publish_one(entry)
        results = await publisher.publish_batch(entries)
    """

    def __init__(
        self,
        sender: EventSender,
        retry_config: RetryConfig | None = None,
        *,
        timeout_seconds: float | None = DEFAULT_TIMEOUT_SECONDS,
        concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT,
        classifier: ErrorClassifier | None = None,
        observer: RetryObserver | None = log_retry_event,
        publish_observer: PublishObserver | None = log_publish_event,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        sample: Callable[[float, float], float] = random.uniform,
    ):
        if concurrency_limit < 1:
            raise ValueError(f"concurrency_limit must be at least 1, got {concurrency_limit}")
        self.sender = sender
        self.retry_config = retry_config or RetryConfig()
        self.timeout_seconds = timeout_seconds
        self.concurrency_limit = concurrency_limit
        self._policy_kwargs = {
            "classifier": classifier,
            "observer": observer,
            "sleep": sleep,
            "sample": sample,
        }
        self._policy = RetryPolicy(self.retry_config, **self._policy_kwargs)
        self.publish_observer = publish_observer

    def _policy_for(self, config: RetryConfig | None) -> RetryPolicy:
        if config is None or config == self.retry_config:
            return self._policy
        return RetryPolicy(config, **self._policy_kwargs)

    async def _send_once(self, entry: PublishEntry, operation_name: str) -> SendResponse:
        response = await run_with_timeout(
            lambda: self.sender.send(entry),
            self.timeout_seconds,
            operation_name,
        )
        if response.failed:
            raise InBandPublishFailure(response)
        return response

    async def publish_one(
        self,
        entry: PublishEntry,
        config: RetryConfig | None = None,
    ) -> PublishResult:
        """Publish one entry.

        Raises:
            PublishError: retries exhausted or the failure is non-retryable.
        """
        policy = self._policy_for(config)
        operation_name = f"EventBridge-{entry.detail_type}"
        start = time.monotonic()

        try:
            outcome = await policy.execute(
                lambda: self._send_once(entry, operation_name),
                operation_name,
            )
        except RetryError as e:
            retry_count = e.attempts - 1
            duration_ms = (time.monotonic() - start) * 1000
            notify(self.publish_observer, PublishEvent(
                kind="publish_failed",
                operation=operation_name,
                source=entry.source,
                detail_type=entry.detail_type,
                event_bus=entry.event_bus_name,
                category=e.details.category.value,
                error=str(e.last_error),
                retry_count=retry_count,
                duration_ms=duration_ms,
            ))
            raise PublishError(
                f"Event publishing failed after {retry_count} retries: {e.last_error}",
                category=e.details.category,
                retry_count=retry_count,
                original_error=e.last_error,
            ) from e.last_error

        duration_ms = (time.monotonic() - start) * 1000
        notify(self.publish_observer, PublishEvent(
            kind="published",
            operation=operation_name,
            source=entry.source,
            detail_type=entry.detail_type,
            event_bus=entry.event_bus_name,
            message_id=outcome.result.message_id,
            retry_count=outcome.attempts - 1,
            duration_ms=duration_ms,
        ))
        return PublishResult(
            success=True,
            message_id=outcome.result.message_id,
            retry_count=outcome.attempts - 1,
            duration_ms=duration_ms,
        )

    async def publish_batch(
        self,
        entries: Sequence[PublishEntry],
        config: RetryConfig | None = None,
        concurrency_limit: int | None = None,
    ) -> list[PublishResult]:
        """Publish many entries, `concurrency_limit` at a time.

        Never raises for per-entry failures: result `i` always describes
        entry `i`. A `concurrency_limit` below 1 runs one entry at a time.
        """
        if concurrency_limit is None:
            window = self.concurrency_limit
        else:
            window = max(1, concurrency_limit)
        settled = await windowed_gather(
            entries,
            lambda entry: self.publish_one(entry, config),
            window,
        )

        results: list[PublishResult] = []
        for item in settled:
            if item.ok:
                results.append(item.value)
            else:
                results.append(PublishResult(
                    success=False,
                    failure_reason=str(item.error),
                    retry_count=0,
                    duration_ms=0.0,
                ))

        failed = sum(1 for r in results if not r.success)
        notify(self.publish_observer, PublishEvent(
            kind="batch_published",
            operation="EventBridge-batch",
            total=len(results),
            succeeded=len(results) - failed,
            failed=failed,
            window=window,
        ))
        return results
