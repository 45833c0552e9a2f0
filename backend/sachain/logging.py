"""Structured Logging for the Sachain KYC Backend

structlog over the stdlib root handler:
- Colored, human-readable dev output
- JSON structured output for Lambda/CloudWatch
- Context propagation (request id, document id, ...)
"""
import logging
import sys

import structlog
from structlog.types import EventDict, Processor

SERVICE_NAME = "sachain-kyc"
SERVICE_VERSION = "0.1.0"

_SENSITIVE_KEYS = {"password", "token", "secret", "authorization", "cookie", "id_token", "access_token"}


def _censor_sensitive_keys(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Processor that redacts sensitive information."""

    def _redact(obj, depth: int = 0):
        if depth > 5:
            return obj
        if isinstance(obj, dict):
            return {
                k: "[REDACTED]" if str(k).lower() in _SENSITIVE_KEYS else _redact(v, depth + 1)
                for k, v in obj.items()
            }
        if isinstance(obj, list):
            return [_redact(item, depth + 1) for item in obj]
        return obj

    return _redact(event_dict)


def _add_service_info(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("version", SERVICE_VERSION)
    return event_dict


def get_shared_processors() -> list[Processor]:
    """Processors used in both dev and prod configurations."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _add_service_info,
        _censor_sensitive_keys,
    ]


def configure_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """Configure the logging system.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: JSON output (Lambda/CloudWatch) when True, colored console otherwise.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    shared_processors = get_shared_processors()

    if json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.plain_traceback,
        )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(log_level)

    # boto3 is chatty at DEBUG
    for logger_name in ("boto3", "botocore", "urllib3"):
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """Bind key-value pairs to the current logging context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def retry_logger() -> structlog.stdlib.BoundLogger:
    """Logger for retry/backoff events."""
    return get_logger("sachain.retry")


def publish_logger() -> structlog.stdlib.BoundLogger:
    """Logger for event bus publishing."""
    return get_logger("sachain.publish")


def storage_logger() -> structlog.stdlib.BoundLogger:
    """Logger for storage and database operations."""
    return get_logger("sachain.storage")
