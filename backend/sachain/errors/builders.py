"""Error Detail Builders

Ergonomic constructors for `ErrorDetails` per category, and the `ErrorRule`
type the per-service classification tables are made of.
"""
from dataclasses import dataclass
from typing import Any, Mapping

from .types import ErrorCategory, ErrorDetails, Failure


@dataclass(frozen=True)
class ErrorRule:
    """One row of a service classification table.

    `retryable=None` means the category default applies.
    """
    category: ErrorCategory
    technical_message: str
    user_message: str | None = None
    retryable: bool | None = None
    append_detail: bool = False

    def apply(
        self,
        failure: Failure,
        context: Mapping[str, Any] | None = None,
    ) -> ErrorDetails:
        technical = self.technical_message
        if self.append_detail and failure.message:
            technical = f"{technical}: {failure.message}"
        return build_details(
            self.category,
            technical,
            failure,
            context=context,
            retryable=self.retryable,
            user_message=self.user_message,
        )


def build_details(
    category: ErrorCategory,
    technical_message: str,
    failure: Failure | None = None,
    *,
    context: Mapping[str, Any] | None = None,
    retryable: bool | None = None,
    user_message: str | None = None,
) -> ErrorDetails:
    """Create classification details, filling defaults from the category."""
    return ErrorDetails(
        category=category,
        retryable=category.default_retryable if retryable is None else retryable,
        user_message=user_message or category.user_message,
        technical_message=technical_message,
        error_code=(failure.code or failure.name or None) if failure else None,
        http_status_code=failure.http_status if failure else None,
        context=dict(context) if context else None,
    )


# =============================================================================
# Category shorthands
# =============================================================================

def transient(technical_message: str, failure: Failure | None = None, **kwargs) -> ErrorDetails:
    return build_details(ErrorCategory.TRANSIENT, technical_message, failure, retryable=True, **kwargs)


def unknown_error(failure: Failure, service: str = "AWS", **kwargs) -> ErrorDetails:
    """Fallback for anything no rule recognised."""
    message = failure.message or "Unknown error occurred"
    return build_details(
        ErrorCategory.SYSTEM,
        f"Unknown {service} error: {message}",
        failure,
        retryable=False,
        **kwargs,
    )
