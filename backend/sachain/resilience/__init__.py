"""Resilience Patterns

Makes operations against unreliable remote services behave predictably:
- Retry policies with exponential backoff and jitter
- Timeout race for single remote calls
- Bounded-concurrency windowed fan-out
- Observer hooks for attempt/retry/success/failure events
"""
from .observers import (
    RetryEvent,
    RetryObserver,
    log_retry_event,
    notify,
)

from .retry import (
    DEFAULT_RETRYABLE_ERRORS,
    BackoffCalculator,
    JitterStrategy,
    RetryConfig,
    RetryError,
    RetryPolicy,
    RetryResult,
    exponential_delay,
    get_backoff_calculator,
    retryable,
    with_retry,
)

from .timeout import (
    OperationTimeoutError,
    run_with_timeout,
)

from .batch import (
    WindowItemResult,
    chunk,
    windowed_gather,
)

__all__ = [
    # Observers
    "RetryEvent",
    "RetryObserver",
    "log_retry_event",
    "notify",
    # Retry
    "DEFAULT_RETRYABLE_ERRORS",
    "BackoffCalculator",
    "JitterStrategy",
    "RetryConfig",
    "RetryError",
    "RetryPolicy",
    "RetryResult",
    "exponential_delay",
    "get_backoff_calculator",
    "retryable",
    "with_retry",
    # Timeout
    "OperationTimeoutError",
    "run_with_timeout",
    # Batch
    "WindowItemResult",
    "chunk",
    "windowed_gather",
]
