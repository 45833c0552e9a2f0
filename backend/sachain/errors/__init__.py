"""Error Classification

Closed failure taxonomy for calls against remote services (object storage,
the document database, the event bus) and the classifier that maps any
failure value onto it.

Usage:
    from sachain.errors import classify, ErrorCategory

    details = classify(exc, context={"operation": "put_object"})
    if details.category is ErrorCategory.RATE_LIMIT:
        ...
"""
from .types import (
    ErrorCategory,
    ErrorDetails,
    Failure,
    Result,
    Ok,
    Err,
)

from .failures import to_failure

from .builders import (
    ErrorRule,
    build_details,
    transient,
    unknown_error,
)

from .classifier import (
    DYNAMODB_RULES,
    EVENTBRIDGE_RULES,
    RETRYABLE_PATTERNS,
    S3_RULES,
    SERVICE_RULES,
    ErrorClassifier,
    classify,
    default_classifier,
    get_technical_message,
    get_user_message,
    is_retryable,
)

from .boundaries import (
    ServiceError,
    map_service_errors,
)

__all__ = [
    # Types
    "ErrorCategory",
    "ErrorDetails",
    "Failure",
    "Result",
    "Ok",
    "Err",
    "to_failure",
    # Builders
    "ErrorRule",
    "build_details",
    "transient",
    "unknown_error",
    # Classifier
    "DYNAMODB_RULES",
    "EVENTBRIDGE_RULES",
    "RETRYABLE_PATTERNS",
    "S3_RULES",
    "SERVICE_RULES",
    "ErrorClassifier",
    "classify",
    "default_classifier",
    "get_technical_message",
    "get_user_message",
    "is_retryable",
    # Boundaries
    "ServiceError",
    "map_service_errors",
]
