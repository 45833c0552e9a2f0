"""Service Error Boundaries

Repository and storage functions raise one typed error at their boundary:
`ServiceError`, carrying the classification of whatever went wrong below.
"""
from __future__ import annotations

import functools
import time
from typing import Any, Awaitable, Callable, Mapping, TypeVar

from sachain.logging import storage_logger

from .classifier import classify
from .types import ErrorCategory, ErrorDetails

T = TypeVar("T")


class ServiceError(Exception):
    """Classified failure of a remote-service operation."""

    def __init__(self, details: ErrorDetails, original_error: BaseException | None = None):
        super().__init__(details.technical_message)
        self.details = details
        self.original_error = original_error

    @property
    def category(self) -> ErrorCategory:
        return self.details.category

    @property
    def retryable(self) -> bool:
        return self.details.retryable

    @property
    def user_message(self) -> str:
        return self.details.user_message

    @property
    def technical_message(self) -> str:
        return self.details.technical_message

    @property
    def error_code(self) -> str | None:
        return self.details.error_code

    @property
    def http_status_code(self) -> int | None:
        return self.details.http_status_code

    @property
    def context(self) -> Mapping[str, Any] | None:
        return self.details.context


def map_service_errors(operation: str, resource: str | None = None):
    """Decorator that logs an async operation and re-raises failures classified.

    Usage:
        @map_service_errors("documents.put", resource="kyc-documents")
        async def put_document(item: dict) -> None:
            ...
    """
    def decorator(fn: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(fn)
        async def wrapper(*args, **kwargs) -> T:
            log = storage_logger()
            start = time.monotonic()
            try:
                result = await fn(*args, **kwargs)
            except ServiceError:
                raise
            except Exception as exc:
                duration_ms = round((time.monotonic() - start) * 1000, 2)
                details = classify(
                    exc,
                    context={"operation": operation, "resource": resource, "duration_ms": duration_ms},
                )
                log.error(
                    "service_operation_failed",
                    operation=operation,
                    resource=resource,
                    duration_ms=duration_ms,
                    category=details.category.value,
                    error_code=details.error_code,
                    retryable=details.retryable,
                    technical_message=details.technical_message,
                )
                raise ServiceError(details, exc) from exc

            log.info(
                "service_operation_completed",
                operation=operation,
                resource=resource,
                duration_ms=round((time.monotonic() - start) * 1000, 2),
            )
            return result
        return wrapper
    return decorator
