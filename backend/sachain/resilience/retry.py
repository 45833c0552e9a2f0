"""Retry Policies with Exponential Backoff and Jitter

Runs an async operation until it succeeds, fails with a non-retryable
error, or runs out of attempts. Every failure is classified by the error
classifier; delays grow exponentially and are randomized per the
configured jitter strategy.
"""
from __future__ import annotations

import asyncio
import functools
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Awaitable, Callable, Generic, TypeVar

from sachain.errors import ErrorClassifier, ErrorDetails, Err, Ok, Result, default_classifier

from .observers import RetryEvent, RetryObserver, log_retry_event, notify

T = TypeVar("T")

Sampler = Callable[[float, float], float]

DEFAULT_RETRYABLE_ERRORS: frozenset[str] = frozenset({
    "ProvisionedThroughputExceededException",
    "ThrottlingException",
    "ServiceUnavailable",
    "InternalServerError",
    "RequestTimeout",
    "NetworkingError",
    "UnknownError",
})

# 2**62 * any sane base delay is already far beyond any max delay
_MAX_EXPONENT = 62


class JitterStrategy(Enum):
    """Randomization applied on top of the exponential delay."""
    NONE = "none"
    FULL = "full"
    EQUAL = "equal"
    DECORRELATED = "decorrelated"


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior. Total attempts = max_retries + 1."""
    max_retries: int = 3
    base_delay_seconds: float = 0.2
    max_delay_seconds: float = 5.0
    jitter: JitterStrategy = JitterStrategy.FULL
    retryable_error_names: frozenset[str] = field(
        default_factory=lambda: DEFAULT_RETRYABLE_ERRORS
    )

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be non-negative, got {self.max_retries}")
        if isinstance(self.jitter, str):
            object.__setattr__(self, "jitter", JitterStrategy(self.jitter))
        if not isinstance(self.retryable_error_names, frozenset):
            object.__setattr__(self, "retryable_error_names", frozenset(self.retryable_error_names))

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def with_overrides(self, **changes) -> RetryConfig:
        """Copy with some fields changed; the original is left untouched."""
        return replace(self, **changes)


@dataclass(frozen=True)
class RetryResult(Generic[T]):
    """Successful execution with attempt accounting."""
    result: T
    attempts: int
    total_delay_seconds: float


class RetryError(Exception):
    """Terminal failure: attempts exhausted or a non-retryable error."""

    def __init__(
        self,
        message: str,
        attempts: int,
        last_error: BaseException,
        total_delay_seconds: float,
        details: ErrorDetails,
    ):
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error
        self.total_delay_seconds = total_delay_seconds
        self.details = details

    @property
    def category(self):
        return self.details.category

    @property
    def retryable(self) -> bool:
        return False


# =============================================================================
# Delay calculation
# =============================================================================

def exponential_delay(attempt: int, config: RetryConfig) -> float:
    """min(base * 2^(attempt-1), max) for a 1-indexed attempt."""
    exponent = min(max(attempt - 1, 0), _MAX_EXPONENT)
    delay = config.base_delay_seconds * (2 ** exponent)
    return max(0.0, min(delay, config.max_delay_seconds))


class BackoffCalculator(ABC):
    """Abstract base for backoff delay calculation."""

    @abstractmethod
    def calculate(
        self,
        attempt: int,
        config: RetryConfig,
        previous_delay: float | None,
        sample: Sampler,
    ) -> float:
        """Delay in seconds after the given failed attempt (1-indexed)."""


class NoJitterBackoff(BackoffCalculator):
    def calculate(self, attempt, config, previous_delay, sample):
        return exponential_delay(attempt, config)


class FullJitterBackoff(BackoffCalculator):
    def calculate(self, attempt, config, previous_delay, sample):
        return sample(0.0, exponential_delay(attempt, config))


class EqualJitterBackoff(BackoffCalculator):
    def calculate(self, attempt, config, previous_delay, sample):
        ceiling = exponential_delay(attempt, config)
        return sample(ceiling / 2, ceiling)


class DecorrelatedJitterBackoff(BackoffCalculator):
    """AWS-style decorrelated jitter.

    Formula: sleep = min(cap, random(base, previous_sleep * 3)), where
    previous_sleep is the delay actually slept before this one (base on the
    first retry). State lives in the caller, one per execution.
    """

    def calculate(self, attempt, config, previous_delay, sample):
        base = max(0.0, config.base_delay_seconds)
        previous = base if previous_delay is None else previous_delay
        upper = max(base, previous * 3)
        return max(0.0, min(config.max_delay_seconds, sample(base, upper)))


_CALCULATORS: dict[JitterStrategy, BackoffCalculator] = {
    JitterStrategy.NONE: NoJitterBackoff(),
    JitterStrategy.FULL: FullJitterBackoff(),
    JitterStrategy.EQUAL: EqualJitterBackoff(),
    JitterStrategy.DECORRELATED: DecorrelatedJitterBackoff(),
}


def get_backoff_calculator(strategy: JitterStrategy) -> BackoffCalculator:
    return _CALCULATORS[strategy]


# =============================================================================
# Policy
# =============================================================================

class RetryPolicy:
    """Retry policy for operations against unreliable remote services.

    Usage:
        policy = RetryPolicy(RetryConfig(max_retries=3))

        async def put_item():
            return await asyncio.to_thread(table.put_item, Item=item)

        outcome = await policy.execute(put_item, "documents.put_item")
        log.info("stored", attempts=outcome.attempts)
    """

    def __init__(
        self,
        config: RetryConfig | None = None,
        *,
        classifier: ErrorClassifier | None = None,
        observer: RetryObserver | None = log_retry_event,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        sample: Sampler = random.uniform,
    ):
        self.config = config or RetryConfig()
        self.classifier = classifier or default_classifier
        self.observer = observer
        self._calculator = get_backoff_calculator(self.config.jitter)
        self._sleep = sleep
        self._sample = sample

    def compute_delay(self, attempt: int, previous_delay: float | None = None) -> float:
        """Delay to wait after failed attempt `attempt` (1-indexed)."""
        return self._calculator.calculate(attempt, self.config, previous_delay, self._sample)

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        operation_name: str = "unknown",
    ) -> RetryResult[T]:
        """Run `operation` with retries.

        Raises:
            RetryError: after the last allowed attempt, or at once on a
                non-retryable failure.
        """
        config = self.config
        total_delay = 0.0
        previous_delay: float | None = None

        for attempt in range(1, config.max_attempts + 1):
            try:
                value = await operation()
            except Exception as exc:
                details = self.classifier.classify(
                    exc,
                    context={"operation": operation_name, "attempt": attempt},
                    retryable_names=config.retryable_error_names,
                )
                event_error = {
                    "error_name": details.error_code or type(exc).__name__,
                    "error_message": str(exc),
                }
                notify(self.observer, RetryEvent(
                    kind="attempt_failed",
                    operation=operation_name,
                    attempt=attempt,
                    max_retries=config.max_retries,
                    total_delay=total_delay,
                    **event_error,
                ))

                if attempt >= config.max_attempts or not details.retryable:
                    notify(self.observer, RetryEvent(
                        kind="failure",
                        operation=operation_name,
                        attempt=attempt,
                        max_retries=config.max_retries,
                        total_delay=total_delay,
                        **event_error,
                    ))
                    reason = "non-retryable error" if not details.retryable else "retries exhausted"
                    raise RetryError(
                        f"Operation {operation_name} failed after {attempt} attempt(s) ({reason}): {exc}",
                        attempts=attempt,
                        last_error=exc,
                        total_delay_seconds=total_delay,
                        details=details,
                    ) from exc

                delay = self.compute_delay(attempt, previous_delay)
                previous_delay = delay
                notify(self.observer, RetryEvent(
                    kind="retry",
                    operation=operation_name,
                    attempt=attempt,
                    max_retries=config.max_retries,
                    delay=delay,
                    total_delay=total_delay,
                    **event_error,
                ))
                await self._sleep(delay)
                total_delay += delay
                continue

            notify(self.observer, RetryEvent(
                kind="success",
                operation=operation_name,
                attempt=attempt,
                max_retries=config.max_retries,
                total_delay=total_delay,
            ))
            return RetryResult(result=value, attempts=attempt, total_delay_seconds=total_delay)

        # range() above always runs at least once and every path returns or raises
        raise AssertionError("unreachable")

    async def execute_result(
        self,
        operation: Callable[[], Awaitable[T]],
        operation_name: str = "unknown",
    ) -> Result[RetryResult[T], RetryError]:
        """Like `execute`, but terminal failures come back as `Err`."""
        try:
            return Ok(await self.execute(operation, operation_name))
        except RetryError as e:
            return Err(e)


def with_retry(
    fn: Callable[..., Awaitable[T]],
    config: RetryConfig | None = None,
    operation_name: str | None = None,
    **policy_kwargs,
) -> Callable[..., Awaitable[T]]:
    """Wrap an async callable so every call runs under a retry policy.

    The wrapper returns the bare result; terminal failures raise RetryError.
    """
    policy = RetryPolicy(config, **policy_kwargs)
    name = operation_name or getattr(fn, "__qualname__", repr(fn))

    @functools.wraps(fn)
    async def wrapper(*args, **kwargs) -> T:
        outcome = await policy.execute(lambda: fn(*args, **kwargs), name)
        return outcome.result

    return wrapper


def retryable(config: RetryConfig | None = None, operation_name: str | None = None, **policy_kwargs):
    """Decorator form of `with_retry`.

    Usage:
        @retryable(RetryConfig(max_retries=2))
        async def save_document(item: dict) -> None:
            ...
    """
    def decorator(fn: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        return with_retry(fn, config, operation_name, **policy_kwargs)
    return decorator
