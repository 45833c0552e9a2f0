"""Error Taxonomy and Result Types

Closed error taxonomy shared by every remote-service call in the backend,
the normalized failure shape the classifier works on, and the Result
container used where a caller prefers values over exceptions.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Any, Callable, Generic, Iterator, Mapping, NoReturn, TypeVar, Union, final,
)

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")


class ErrorCategory(Enum):
    """Closed classification of remote-service failures."""
    TRANSIENT = "transient"
    RATE_LIMIT = "rate_limit"
    VALIDATION = "validation"
    AUTHORIZATION = "authorization"
    RESOURCE_NOT_FOUND = "resource_not_found"
    SYSTEM = "system"

    @property
    def http_status(self) -> int:
        """HTTP status a handler should answer with for this category."""
        return _HTTP_STATUS[self]

    @property
    def default_retryable(self) -> bool:
        return self in _RETRYABLE_BY_DEFAULT

    @property
    def user_message(self) -> str:
        """Generic user-facing message for this category."""
        return _USER_MESSAGES[self]


_HTTP_STATUS: dict[ErrorCategory, int] = {
    ErrorCategory.TRANSIENT: 503,
    ErrorCategory.RATE_LIMIT: 429,
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.AUTHORIZATION: 403,
    ErrorCategory.RESOURCE_NOT_FOUND: 404,
    ErrorCategory.SYSTEM: 500,
}

_RETRYABLE_BY_DEFAULT = frozenset({
    ErrorCategory.TRANSIENT,
    ErrorCategory.RATE_LIMIT,
    ErrorCategory.SYSTEM,
})

_USER_MESSAGES: dict[ErrorCategory, str] = {
    ErrorCategory.TRANSIENT: "The service is temporarily unavailable. Please try again.",
    ErrorCategory.RATE_LIMIT: "Too many requests. Please try again in a moment.",
    ErrorCategory.VALIDATION: "Invalid request. Please check your input and try again.",
    ErrorCategory.AUTHORIZATION: "You do not have permission to perform this operation.",
    ErrorCategory.RESOURCE_NOT_FOUND: "The requested resource was not found.",
    ErrorCategory.SYSTEM: "An unexpected error occurred. Please try again or contact support.",
}


@dataclass(frozen=True, slots=True)
class Failure:
    """Normalized failure shape.

    Exceptions, botocore errors, in-band error descriptors and bare strings
    are all reduced to this before classification, so the classifier only
    ever sees one shape.

    `category`/`retryable` are set when the failure was already typed by
    this package (a timeout race, a classified ServiceError); such failures
    are not reclassified.
    """
    name: str = ""
    message: str = ""
    code: str | None = None
    http_status: int | None = None
    service: str | None = None
    category: ErrorCategory | None = None
    retryable: bool | None = None
    cause: BaseException | None = field(default=None, compare=False)

    @property
    def identifiers(self) -> tuple[str, ...]:
        """Name and code, de-duplicated, empty values dropped."""
        ids: list[str] = []
        for value in (self.name, self.code):
            if value and value not in ids:
                ids.append(value)
        return tuple(ids)

    @property
    def display_name(self) -> str:
        return self.name or self.code or "UnknownError"


@dataclass(frozen=True, slots=True)
class ErrorDetails:
    """Outcome of classifying one failure."""
    category: ErrorCategory
    retryable: bool
    user_message: str
    technical_message: str
    error_code: str | None = None
    http_status_code: int | None = None
    context: Mapping[str, Any] | None = None

    @property
    def response_status(self) -> int:
        return self.category.http_status

    def to_dict(self) -> dict:
        """Serialize for API responses and structured logs."""
        payload = {
            "category": self.category.value,
            "retryable": self.retryable,
            "message": self.user_message,
            "technical_message": self.technical_message,
            "status": self.response_status,
        }
        if self.error_code:
            payload["error_code"] = self.error_code
        if self.context:
            payload["context"] = dict(self.context)
        return payload


@final
@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Success variant of Result."""
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def map(self, f: Callable[[T], U]) -> Result[U, Any]:
        return Ok(f(self.value))

    def match(self, ok: Callable[[T], U], err: Callable[[Any], U]) -> U:
        return ok(self.value)

    def __iter__(self) -> Iterator[T]:
        yield self.value


@final
@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failure variant of Result."""
    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> NoReturn:
        if isinstance(self.error, BaseException):
            raise self.error
        raise ValueError(f"Called unwrap on Err: {self.error}")

    def unwrap_or(self, default: T) -> T:
        return default

    def unwrap_err(self) -> E:
        return self.error

    def map(self, f: Callable[[Any], U]) -> Result[U, E]:
        return self  # type: ignore

    def match(self, ok: Callable[[Any], U], err: Callable[[E], U]) -> U:
        return err(self.error)

    def __iter__(self) -> Iterator:
        return iter([])


Result = Union[Ok[T], Err[E]]
