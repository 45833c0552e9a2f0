"""Failure Normalization

Reduces every failure shape the backend encounters to a `Failure`:
raised exceptions, botocore client errors, in-band error descriptors
returned by AWS batch APIs, and bare strings.
"""
from __future__ import annotations

from typing import Any, Mapping

from botocore.exceptions import BotoCoreError, ClientError

from .types import ErrorCategory, Failure

_NAME_KEYS = ("name", "Name", "errorName", "error_name")
_CODE_KEYS = ("code", "Code", "ErrorCode", "errorCode", "error_code")
_MESSAGE_KEYS = ("message", "Message", "ErrorMessage", "errorMessage", "error_message")
_STATUS_KEYS = ("httpStatus", "http_status", "status_code", "statusCode", "HTTPStatusCode")


def _safe_str(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        return f"<unprintable {type(value).__name__}>"


def _first(mapping: Mapping, keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = mapping.get(key)
        if value not in (None, ""):
            return value
    return None


def _as_status(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


def _from_client_error(exc: ClientError) -> Failure:
    response = getattr(exc, "response", None) or {}
    error = response.get("Error", {}) or {}
    metadata = response.get("ResponseMetadata", {}) or {}
    code = error.get("Code") or None
    return Failure(
        name=code or type(exc).__name__,
        message=error.get("Message") or _safe_str(exc),
        code=code,
        http_status=_as_status(metadata.get("HTTPStatusCode")),
        service=_service_of(exc),
        cause=exc,
    )


def _service_of(exc: BaseException) -> str | None:
    # Modeled exceptions from client.exceptions live in e.g. "botocore.errorfactory"
    # and carry no service; the operation name is the best hint available.
    operation = getattr(exc, "operation_name", None)
    if not isinstance(operation, str):
        return None
    if operation in {"PutObject", "GetObject", "HeadObject", "DeleteObject", "CopyObject"}:
        return "s3"
    if operation in {"PutEvents"}:
        return "eventbridge"
    if operation in {"PutItem", "GetItem", "UpdateItem", "DeleteItem", "Query", "Scan",
                     "BatchWriteItem", "BatchGetItem", "TransactWriteItems"}:
        return "dynamodb"
    return None


def _from_mapping(value: Mapping) -> Failure:
    metadata = value.get("$metadata") or value.get("ResponseMetadata") or {}
    name = _first(value, _NAME_KEYS)
    code = _first(value, _CODE_KEYS)
    status = _as_status(_first(value, _STATUS_KEYS))
    if status is None and isinstance(metadata, Mapping):
        status = _as_status(_first(metadata, ("httpStatusCode",) + _STATUS_KEYS))
    service = value.get("service")
    if service is None and isinstance(metadata, Mapping):
        service = metadata.get("service")
    return Failure(
        name=_safe_str(name or code or ""),
        message=_safe_str(_first(value, _MESSAGE_KEYS) or ""),
        code=_safe_str(code) if code is not None else None,
        http_status=status,
        service=_safe_str(service).lower() if service else None,
    )


def _from_exception(exc: BaseException) -> Failure:
    typed_category = getattr(exc, "category", None)
    typed_retryable = getattr(exc, "retryable", None)
    name = getattr(exc, "name", None)
    code = getattr(exc, "code", None) or getattr(exc, "error_code", None)
    status = _as_status(
        getattr(exc, "http_status", None)
        or getattr(exc, "http_status_code", None)
        or getattr(exc, "status_code", None)
    )
    return Failure(
        name=name if isinstance(name, str) and name else type(exc).__name__,
        message=_safe_str(exc),
        code=code if isinstance(code, str) else None,
        http_status=status,
        service=getattr(exc, "service", None) if isinstance(getattr(exc, "service", None), str) else None,
        category=typed_category if isinstance(typed_category, ErrorCategory) else None,
        retryable=typed_retryable if isinstance(typed_retryable, bool) else None,
        cause=exc,
    )


def to_failure(value: Any) -> Failure:
    """Normalize any failure value. Never raises."""
    if isinstance(value, Failure):
        return value
    if isinstance(value, ClientError):
        return _from_client_error(value)
    if isinstance(value, BotoCoreError):
        return Failure(name=type(value).__name__, message=_safe_str(value), cause=value)
    if isinstance(value, BaseException):
        return _from_exception(value)
    if isinstance(value, Mapping):
        return _from_mapping(value)
    if isinstance(value, str):
        return Failure(name=value, message=value)
    if value is None:
        return Failure(name="UnknownError", message="Unknown error occurred")
    return Failure(name=type(value).__name__, message=_safe_str(value))
