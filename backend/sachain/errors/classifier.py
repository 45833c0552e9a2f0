"""Error Classifier

Maps any failure value to the closed `ErrorCategory` taxonomy plus a
retryability flag and a user/technical message pair.

Precedence, first match wins:
    0. category already assigned by this package (timeouts, ServiceError)
    1. caller allow-list of retryable names/codes -> TRANSIENT
    2. per-service name/code tables (DynamoDB, S3, EventBridge)
    3. retry-indicative substrings in name or message -> TRANSIENT
    4. HTTP status fallback
    5. SYSTEM, non-retryable

Classification is pure and total: it never raises.
"""
from __future__ import annotations

import re
from typing import Any, Iterable, Mapping

from .builders import ErrorRule, build_details, transient, unknown_error
from .failures import to_failure
from .types import ErrorCategory, ErrorDetails, Failure

_C = ErrorCategory

DYNAMODB_RULES: dict[str, ErrorRule] = {
    "ProvisionedThroughputExceededException": ErrorRule(
        _C.RATE_LIMIT,
        "DynamoDB provisioned throughput exceeded",
        "Service is temporarily busy. Please try again in a moment.",
    ),
    "ThrottlingException": ErrorRule(_C.RATE_LIMIT, "DynamoDB throttling exception"),
    "RequestLimitExceeded": ErrorRule(_C.RATE_LIMIT, "DynamoDB request limit exceeded"),
    "ResourceNotFoundException": ErrorRule(_C.RESOURCE_NOT_FOUND, "DynamoDB resource not found"),
    "ConditionalCheckFailedException": ErrorRule(
        _C.VALIDATION,
        "DynamoDB conditional check failed",
        "The operation could not be completed due to a conflict.",
    ),
    "ValidationException": ErrorRule(
        _C.VALIDATION,
        "DynamoDB validation error",
        append_detail=True,
    ),
    "AccessDeniedException": ErrorRule(_C.AUTHORIZATION, "DynamoDB access denied"),
    "UnauthorizedException": ErrorRule(_C.AUTHORIZATION, "DynamoDB access denied"),
    "ServiceUnavailable": ErrorRule(
        _C.SYSTEM,
        "DynamoDB service unavailable",
        "Service is temporarily unavailable. Please try again later.",
    ),
    "InternalServerError": ErrorRule(
        _C.SYSTEM,
        "DynamoDB service unavailable",
        "Service is temporarily unavailable. Please try again later.",
    ),
    "RequestTimeout": ErrorRule(_C.TRANSIENT, "DynamoDB request timeout", "Request timed out. Please try again."),
    "TimeoutError": ErrorRule(_C.TRANSIENT, "DynamoDB request timeout", "Request timed out. Please try again."),
    "NetworkingError": ErrorRule(
        _C.TRANSIENT,
        "DynamoDB networking error",
        "Network connection error. Please check your connection and try again.",
    ),
    "ConnectionError": ErrorRule(
        _C.TRANSIENT,
        "DynamoDB networking error",
        "Network connection error. Please check your connection and try again.",
    ),
}

S3_RULES: dict[str, ErrorRule] = {
    "NoSuchBucket": ErrorRule(
        _C.SYSTEM,
        "S3 bucket does not exist",
        "Storage service configuration error. Please contact support.",
        retryable=False,
    ),
    "NoSuchKey": ErrorRule(_C.RESOURCE_NOT_FOUND, "S3 object does not exist", "The requested file was not found."),
    "AccessDenied": ErrorRule(
        _C.AUTHORIZATION,
        "S3 access denied",
        "You do not have permission to access this file.",
    ),
    "EntityTooLarge": ErrorRule(_C.VALIDATION, "S3 entity too large", "File is too large to upload."),
    "SlowDown": ErrorRule(
        _C.RATE_LIMIT,
        "S3 slow down error",
        "Upload service is busy. Please try again in a moment.",
        retryable=True,
    ),
    "ServiceUnavailable": ErrorRule(
        _C.SYSTEM,
        "S3 service unavailable",
        "Upload service is temporarily unavailable. Please try again.",
    ),
    "InternalError": ErrorRule(
        _C.SYSTEM,
        "S3 service unavailable",
        "Upload service is temporarily unavailable. Please try again.",
    ),
    "RequestTimeout": ErrorRule(_C.TRANSIENT, "S3 request timeout", "Upload timed out. Please try again."),
}

EVENTBRIDGE_RULES: dict[str, ErrorRule] = {
    "ThrottlingException": ErrorRule(_C.RATE_LIMIT, "EventBridge throttling exception"),
    "InternalFailure": ErrorRule(_C.SYSTEM, "EventBridge internal failure"),
    "InternalException": ErrorRule(_C.SYSTEM, "EventBridge internal failure"),
    "ServiceUnavailableException": ErrorRule(_C.SYSTEM, "EventBridge service unavailable"),
    "ValidationException": ErrorRule(_C.VALIDATION, "EventBridge validation error", append_detail=True),
    "InvalidArgument": ErrorRule(_C.VALIDATION, "EventBridge rejected the entry", append_detail=True),
    "MalformedDetail": ErrorRule(_C.VALIDATION, "EventBridge rejected a malformed detail"),
    "AccessDeniedException": ErrorRule(_C.AUTHORIZATION, "EventBridge access denied"),
    "UnauthorizedOperation": ErrorRule(_C.AUTHORIZATION, "EventBridge access denied"),
    "NotAuthorizedForSourceException": ErrorRule(_C.AUTHORIZATION, "EventBridge source not authorized"),
    "NotAuthorizedForDetailTypeException": ErrorRule(_C.AUTHORIZATION, "EventBridge detail type not authorized"),
    "ResourceNotFoundException": ErrorRule(_C.RESOURCE_NOT_FOUND, "EventBridge event bus not found"),
}

SERVICE_RULES: dict[str, dict[str, ErrorRule]] = {
    "dynamodb": DYNAMODB_RULES,
    "s3": S3_RULES,
    "eventbridge": EVENTBRIDGE_RULES,
}

_SERVICE_LABELS = {"dynamodb": "DynamoDB", "s3": "S3", "eventbridge": "EventBridge"}

RETRYABLE_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"throttl",
        r"timeout",
        r"timed out",
        r"network",
        r"connection",
        r"unavailable",
        r"internal server error",
        r"provisioned throughput exceeded",
        r"rate exceeded",
    )
)


class ErrorClassifier:
    """Classifies failures against per-service rule tables.

    Usage:
        classifier = ErrorClassifier()
        details = classifier.classify(exc, context={"operation": "put_item"})
        if details.retryable:
            ...
    """

    def __init__(
        self,
        service_rules: Mapping[str, Mapping[str, ErrorRule]] | None = None,
        patterns: Iterable[re.Pattern[str]] = RETRYABLE_PATTERNS,
    ):
        self.service_rules = dict(service_rules if service_rules is not None else SERVICE_RULES)
        self.patterns = tuple(patterns)

    def classify(
        self,
        error: Any,
        context: Mapping[str, Any] | None = None,
        retryable_names: Iterable[str] | None = None,
    ) -> ErrorDetails:
        failure = to_failure(error)

        if failure.category is not None:
            return build_details(
                failure.category,
                failure.message or failure.display_name,
                failure,
                context=context,
                retryable=failure.retryable,
            )

        if retryable_names:
            allowed = set(retryable_names)
            if any(identifier in allowed for identifier in failure.identifiers):
                return transient(
                    f"Retryable error {failure.display_name}: {failure.message}",
                    failure,
                    context=context,
                )

        rule, service = self._match_rule(failure)
        if rule is not None:
            return rule.apply(failure, context)

        label = _SERVICE_LABELS.get(service or failure.service or "", "AWS")

        if self._matches_pattern(failure):
            return transient(
                f"{label} transient error: {failure.message or failure.display_name}",
                failure,
                context=context,
            )

        by_status = self._classify_status(failure, label, context)
        if by_status is not None:
            return by_status

        return unknown_error(failure, label, context=context)

    def _match_rule(self, failure: Failure) -> tuple[ErrorRule | None, str | None]:
        if failure.service and failure.service in self.service_rules:
            candidates = [(failure.service, self.service_rules[failure.service])]
        else:
            candidates = list(self.service_rules.items())
        for service, rules in candidates:
            for identifier in failure.identifiers:
                rule = rules.get(identifier)
                if rule is not None:
                    return rule, service
        return None, None

    def _matches_pattern(self, failure: Failure) -> bool:
        haystacks = [text for text in (failure.name, failure.message) if text]
        return any(p.search(text) for p in self.patterns for text in haystacks)

    def _classify_status(
        self,
        failure: Failure,
        label: str,
        context: Mapping[str, Any] | None,
    ) -> ErrorDetails | None:
        status = failure.http_status
        if status is None:
            return None
        message = failure.message or failure.display_name
        if status >= 500:
            return build_details(
                _C.SYSTEM, f"{label} server error: {message}", failure,
                context=context, retryable=True,
            )
        if status == 429:
            return build_details(
                _C.RATE_LIMIT, f"{label} rate limit exceeded", failure,
                context=context, retryable=True,
            )
        if status in (401, 403):
            return build_details(
                _C.AUTHORIZATION, f"{label} authorization error: {message}", failure,
                context=context, retryable=False,
            )
        if status == 404:
            return build_details(
                _C.RESOURCE_NOT_FOUND, f"{label} resource not found: {message}", failure,
                context=context, retryable=False,
            )
        if 400 <= status < 500:
            return build_details(
                _C.VALIDATION, f"{label} client error: {message}", failure,
                context=context, retryable=False,
            )
        return None


default_classifier = ErrorClassifier()


def classify(
    error: Any,
    context: Mapping[str, Any] | None = None,
    retryable_names: Iterable[str] | None = None,
) -> ErrorDetails:
    """Classify with the default rule tables."""
    return default_classifier.classify(error, context, retryable_names)


def is_retryable(error: Any) -> bool:
    return classify(error).retryable


def get_user_message(error: Any) -> str:
    return classify(error).user_message


def get_technical_message(error: Any) -> str:
    return classify(error).technical_message
