import json

import pytest
from pydantic import ValidationError

from sachain.publishing import (
    KYC_SOURCE,
    KycDocumentUploadedEvent,
    KycReviewCompletedEvent,
    KycReviewStartedEvent,
    KycStatusChangedEvent,
    KycUploadDetail,
)


def uploaded(**overrides) -> KycDocumentUploadedEvent:
    fields = {
        "user_id": "user-1",
        "document_id": "doc-1",
        "document_type": "national_id",
        "file_size": 2048,
        "mime_type": "image/jpeg",
        "s3_key": "kyc/user-1/doc-1.jpg",
        "user_type": "investor",
    }
    fields.update(overrides)
    return KycDocumentUploadedEvent(**fields)


def test_event_renders_camel_case_entry() -> None:
    entry = uploaded().to_entry("kyc-bus")

    assert entry.source == KYC_SOURCE
    assert entry.detail_type == "KYC Document Uploaded"
    assert entry.event_bus_name == "kyc-bus"

    body = json.loads(entry.body)
    assert body["userId"] == "user-1"
    assert body["documentId"] == "doc-1"
    assert body["eventType"] == "KYC_DOCUMENT_UPLOADED"
    assert body["s3Key"] == "kyc/user-1/doc-1.jpg"
    assert body["version"] == "1.0"
    assert "eventId" in body and "timestamp" in body


def test_optional_fields_are_omitted() -> None:
    event = KycStatusChangedEvent(
        user_id="user-1",
        document_id="doc-1",
        previous_status="pending",
        new_status="approved",
        reviewed_by="admin-7",
        document_type="national_id",
        user_type="entrepreneur",
    )

    body = json.loads(event.to_entry().body)

    assert "reviewComments" not in body
    assert body["newStatus"] == "approved"


def test_accepts_camel_case_input() -> None:
    event = KycReviewCompletedEvent.model_validate({
        "userId": "user-1",
        "documentId": "doc-1",
        "reviewedBy": "admin-7",
        "reviewResult": "rejected",
        "documentType": "national_id",
        "processingTimeMs": 1200,
    })

    assert event.review_result == "rejected"
    assert event.DETAIL_TYPE == "KYC Review Completed"


@pytest.mark.parametrize(
    "overrides",
    [
        {"file_size": 0},
        {"user_id": ""},
        {"document_type": "passport"},
        {"user_type": "admin"},
    ],
)
def test_invalid_events_are_rejected(overrides) -> None:
    with pytest.raises(ValidationError):
        uploaded(**overrides)


def test_events_are_immutable() -> None:
    event = uploaded()

    with pytest.raises(ValidationError):
        event.user_id = "someone-else"


def test_upload_detail_keeps_metadata() -> None:
    detail = KycUploadDetail(
        document_id="doc-1",
        user_id="user-1",
        document_type="national_id",
        file_name="id.jpg",
        file_size=4096,
        content_type="image/jpeg",
        s3_key="kyc/user-1/doc-1.jpg",
        s3_bucket="sachain-kyc",
        uploaded_at="2024-05-01T12:00:00Z",
        metadata={"pages": 1},
    )

    body = json.loads(detail.to_entry().body)

    assert body["s3Bucket"] == "sachain-kyc"
    assert body["metadata"] == {"pages": 1}


def test_only_concrete_events_are_exported() -> None:
    import sachain.publishing as publishing

    assert not hasattr(publishing, "KycEvent")
    for model in (
        publishing.KycDocumentUploadedEvent,
        publishing.KycStatusChangedEvent,
        publishing.KycReviewStartedEvent,
        publishing.KycReviewCompletedEvent,
        publishing.KycUploadDetail,
    ):
        assert model.DETAIL_TYPE


def test_review_started_event_renders_entry() -> None:
    entry = KycReviewStartedEvent(
        user_id="user-1",
        document_id="doc-1",
        reviewed_by="admin-7",
        document_type="national_id",
    ).to_entry()

    assert entry.detail_type == "KYC Review Started"
    assert json.loads(entry.body)["reviewedBy"] == "admin-7"
