"""KYC event models.

Typed payloads for the events the KYC workflow emits, each rendered to an
opaque `PublishEntry`. Validation happens when a model is built, before
anything reaches the publisher.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, ClassVar, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .models import PublishEntry

KYC_SOURCE = "sachain.kyc"

KycStatus = Literal["not_started", "pending", "approved", "rejected"]
DocumentType = Literal["national_id"]
UserType = Literal["entrepreneur", "investor"]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class _EventModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    DETAIL_TYPE: ClassVar[str]

    def to_entry(self, event_bus_name: str | None = None) -> PublishEntry:
        return PublishEntry(
            source=KYC_SOURCE,
            detail_type=self.DETAIL_TYPE,
            body=self.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8"),
            event_bus_name=event_bus_name,
        )


class _KycEvent(_EventModel):
    event_id: str = Field(default_factory=lambda: str(uuid4()))
    source: Literal["sachain.kyc"] = KYC_SOURCE
    version: Literal["1.0"] = "1.0"
    timestamp: datetime = Field(default_factory=_utc_now)
    user_id: str = Field(min_length=1)
    document_id: str = Field(min_length=1)


class KycStatusChangedEvent(_KycEvent):
    DETAIL_TYPE: ClassVar[str] = "KYC Status Changed"

    event_type: Literal["KYC_STATUS_CHANGED"] = "KYC_STATUS_CHANGED"
    previous_status: KycStatus
    new_status: KycStatus
    reviewed_by: str = Field(min_length=1)
    review_comments: str | None = None
    document_type: DocumentType
    user_type: UserType


class KycDocumentUploadedEvent(_KycEvent):
    DETAIL_TYPE: ClassVar[str] = "KYC Document Uploaded"

    event_type: Literal["KYC_DOCUMENT_UPLOADED"] = "KYC_DOCUMENT_UPLOADED"
    document_type: DocumentType
    file_size: int = Field(gt=0)
    mime_type: str = Field(min_length=1)
    s3_key: str = Field(min_length=1)
    user_type: UserType


class KycReviewStartedEvent(_KycEvent):
    DETAIL_TYPE: ClassVar[str] = "KYC Review Started"

    event_type: Literal["KYC_REVIEW_STARTED"] = "KYC_REVIEW_STARTED"
    reviewed_by: str = Field(min_length=1)
    document_type: DocumentType


class KycReviewCompletedEvent(_KycEvent):
    DETAIL_TYPE: ClassVar[str] = "KYC Review Completed"

    event_type: Literal["KYC_REVIEW_COMPLETED"] = "KYC_REVIEW_COMPLETED"
    reviewed_by: str = Field(min_length=1)
    review_result: Literal["approved", "rejected"]
    review_comments: str | None = None
    document_type: DocumentType
    processing_time_ms: int = Field(ge=0)


class KycUploadDetail(_EventModel):
    """Detail of an uploaded document handed to the processing pipeline."""
    DETAIL_TYPE: ClassVar[str] = "KYC Document Uploaded"

    document_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)
    document_type: str = Field(min_length=1)
    file_name: str = Field(min_length=1)
    file_size: int = Field(gt=0)
    content_type: str = Field(min_length=1)
    s3_key: str = Field(min_length=1)
    s3_bucket: str = Field(min_length=1)
    uploaded_at: str = Field(min_length=1)
    metadata: dict[str, Any] | None = None
