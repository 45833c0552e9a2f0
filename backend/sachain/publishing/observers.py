"""Publish Observers

The publisher reports per-entry and per-batch outcomes through an injected
observer, the same way the retry scheduler reports attempts.
`log_publish_event` is the default and writes structured log lines.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Literal, Union

from sachain.logging import publish_logger

PublishEventKind = Literal["published", "publish_failed", "batch_published"]


@dataclass(frozen=True, slots=True)
class PublishEvent:
    """Structured fields of one publisher event.

    Entry fields are set for `published`/`publish_failed`, the counters for
    `batch_published`.
    """
    kind: PublishEventKind
    operation: str
    source: str | None = None
    detail_type: str | None = None
    event_bus: str | None = None
    message_id: str | None = None
    category: str | None = None
    error: str | None = None
    retry_count: int = 0
    duration_ms: float = 0.0
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    window: int = 0

    def fields(self) -> dict:
        if self.kind == "batch_published":
            return {
                "total": self.total,
                "succeeded": self.succeeded,
                "failed": self.failed,
                "window": self.window,
            }
        fields = {
            "source": self.source,
            "detail_type": self.detail_type,
            "event_bus": self.event_bus,
            "retry_count": self.retry_count,
            "duration_ms": round(self.duration_ms, 2),
        }
        if self.kind == "published":
            fields["message_id"] = self.message_id
        else:
            fields["category"] = self.category
            fields["error"] = self.error
        return fields


PublishObserver = Callable[[PublishEvent], Union[Awaitable[None], None]]


def log_publish_event(event: PublishEvent) -> None:
    log = publish_logger()
    if event.kind == "published":
        log.info("event_published", **event.fields())
    elif event.kind == "publish_failed":
        log.error("event_publish_failed", **event.fields())
    else:
        log.info("event_batch_published", **event.fields())
