"""Publisher construction for the composition root.

The library keeps no global publisher. A Lambda handler module creates one
`PublisherHandle` at import time and reuses it across warm invocations;
tests build their own handle or call `reset()`.
"""
from __future__ import annotations

from typing import Any

from sachain.config import Settings, get_settings

from .eventbridge import EventBridgeSender
from .models import EventSender
from .publisher import ReliablePublisher


def create_publisher(
    settings: Settings | None = None,
    sender: EventSender | None = None,
    **overrides: Any,
) -> ReliablePublisher:
    """Build a ReliablePublisher from settings.

    `overrides` are passed to ReliablePublisher and win over settings.
    """
    settings = settings or get_settings()
    if sender is None:
        sender = EventBridgeSender(
            event_bus_name=settings.EVENT_BUS_NAME,
            region_name=settings.AWS_REGION,
            endpoint_url=settings.EVENTBRIDGE_ENDPOINT_URL,
        )
    kwargs: dict[str, Any] = {
        "timeout_seconds": settings.PUBLISH_TIMEOUT_SECONDS,
        "concurrency_limit": settings.PUBLISH_CONCURRENCY,
    }
    kwargs.update(overrides)
    retry_config = kwargs.pop("retry_config", None) or settings.retry_config()
    return ReliablePublisher(sender, retry_config, **kwargs)


class PublisherHandle:
    """Lazily built, explicitly resettable publisher owned by the caller.

    Usage:
        setup_logging()                         # module level in the handler
        publishers = PublisherHandle()

        async def handler(event, context):
            await publishers.get().publish_one(entry)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        sender: EventSender | None = None,
        **overrides: Any,
    ):
        self._settings = settings
        self._sender = sender
        self._overrides = overrides
        self._publisher: ReliablePublisher | None = None

    @property
    def initialized(self) -> bool:
        return self._publisher is not None

    def get(self) -> ReliablePublisher:
        # No await between check and set, so concurrent tasks see one instance
        if self._publisher is None:
            self._publisher = create_publisher(self._settings, self._sender, **self._overrides)
        return self._publisher

    def reset(self) -> None:
        self._publisher = None
