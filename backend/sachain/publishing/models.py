"""Publishing value objects and the remote sender contract."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from sachain.errors import ErrorCategory


@dataclass(frozen=True)
class PublishEntry:
    """One message for the event bus. The body is opaque bytes."""
    source: str
    detail_type: str
    body: bytes
    event_bus_name: str | None = None

    @property
    def detail(self) -> str:
        return self.body.decode("utf-8")


@dataclass(frozen=True)
class SendResponse:
    """Transport-level success of one send, possibly with an in-band failure."""
    failed_entry_count: int = 0
    message_id: str | None = None
    error_code: str | None = None
    error_message: str | None = None

    @property
    def failed(self) -> bool:
        return self.failed_entry_count > 0 or bool(self.error_code)

    @property
    def failure_reason(self) -> str:
        # ErrorCode first: it is what classification keys on
        return self.error_code or self.error_message or "Unknown error"


@dataclass(frozen=True)
class PublishResult:
    """Outcome of publishing one entry."""
    success: bool
    message_id: str | None = None
    failure_reason: str | None = None
    retry_count: int = 0
    duration_ms: float = 0.0


@runtime_checkable
class EventSender(Protocol):
    """Remote "send one message" capability."""

    async def send(self, entry: PublishEntry) -> SendResponse:
        ...


class InBandPublishFailure(Exception):
    """The bus accepted the request but rejected the entry."""

    service = "eventbridge"

    def __init__(self, response: SendResponse):
        self.response = response
        self.name = response.error_code or "PublishFailure"
        self.code = response.error_code
        if response.error_code and response.error_message:
            message = f"{response.error_code}: {response.error_message}"
        else:
            message = response.failure_reason
        super().__init__(message)


class PublishError(Exception):
    """Terminal publish failure after retries, or a non-retryable rejection."""

    retryable = False

    def __init__(
        self,
        message: str,
        category: ErrorCategory,
        retry_count: int,
        original_error: BaseException | None = None,
    ):
        super().__init__(message)
        self.category = category
        self.retry_count = retry_count
        self.original_error = original_error
