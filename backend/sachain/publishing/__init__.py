"""Reliable Event Publishing

Publishes messages to the event bus with retry, per-attempt timeout and
bounded-concurrency batching.
"""
from .models import (
    EventSender,
    InBandPublishFailure,
    PublishEntry,
    PublishError,
    PublishResult,
    SendResponse,
)

from .observers import (
    PublishEvent,
    PublishObserver,
    log_publish_event,
)

from .publisher import (
    DEFAULT_CONCURRENCY_LIMIT,
    DEFAULT_TIMEOUT_SECONDS,
    ReliablePublisher,
)

from .eventbridge import (
    EventBridgeSender,
    build_put_events_entry,
    get_events_client,
    parse_put_events_response,
)

from .events import (
    KYC_SOURCE,
    KycDocumentUploadedEvent,
    KycReviewCompletedEvent,
    KycReviewStartedEvent,
    KycStatusChangedEvent,
    KycUploadDetail,
)

from .factory import (
    PublisherHandle,
    create_publisher,
)

__all__ = [
    # Models
    "EventSender",
    "InBandPublishFailure",
    "PublishEntry",
    "PublishError",
    "PublishResult",
    "SendResponse",
    # Observers
    "PublishEvent",
    "PublishObserver",
    "log_publish_event",
    # Publisher
    "DEFAULT_CONCURRENCY_LIMIT",
    "DEFAULT_TIMEOUT_SECONDS",
    "ReliablePublisher",
    # EventBridge
    "EventBridgeSender",
    "build_put_events_entry",
    "get_events_client",
    "parse_put_events_response",
    # KYC events
    "KYC_SOURCE",
    "KycDocumentUploadedEvent",
    "KycReviewCompletedEvent",
    "KycReviewStartedEvent",
    "KycStatusChangedEvent",
    "KycUploadDetail",
    # Composition root
    "PublisherHandle",
    "create_publisher",
]
