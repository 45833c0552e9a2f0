from unittest.mock import MagicMock

import pytest

from fakes import make_entry
from sachain.publishing import (
    EventBridgeSender,
    PublishEntry,
    PublishError,
    ReliablePublisher,
    build_put_events_entry,
    parse_put_events_response,
)
from sachain.resilience import RetryConfig


def test_build_put_events_entry_uses_entry_bus() -> None:
    request = build_put_events_entry(make_entry(), "fallback-bus")

    assert request["Source"] == "sachain.kyc"
    assert request["DetailType"] == "KYC Document Uploaded"
    assert request["Detail"] == '{"documentId":"doc-1"}'
    assert request["EventBusName"] == "test-bus"
    assert request["Time"].tzinfo is not None


def test_build_put_events_entry_falls_back_to_default_bus() -> None:
    entry = PublishEntry(source="sachain.kyc", detail_type="KYC Review Started", body=b"{}")

    assert build_put_events_entry(entry, "fallback-bus")["EventBusName"] == "fallback-bus"


def test_parse_successful_response() -> None:
    response = parse_put_events_response({
        "FailedEntryCount": 0,
        "Entries": [{"EventId": "11710aed-b79e-4468-a20b-bb3c0c3b4860"}],
    })

    assert response.failed is False
    assert response.message_id == "11710aed-b79e-4468-a20b-bb3c0c3b4860"


def test_parse_in_band_failure() -> None:
    response = parse_put_events_response({
        "FailedEntryCount": 1,
        "Entries": [{"ErrorCode": "ThrottlingException", "ErrorMessage": "Rate exceeded"}],
    })

    assert response.failed is True
    assert response.message_id is None
    assert response.failure_reason == "ThrottlingException"


def test_parse_empty_response() -> None:
    response = parse_put_events_response({})

    assert response.failed is False
    assert response.message_id is None


@pytest.mark.asyncio
async def test_sender_calls_put_events_once_per_entry() -> None:
    client = MagicMock()
    client.put_events.return_value = {"FailedEntryCount": 0, "Entries": [{"EventId": "evt-42"}]}
    sender = EventBridgeSender("kyc-bus", client=client)

    response = await sender.send(make_entry())

    assert response.message_id == "evt-42"
    client.put_events.assert_called_once()
    (request,) = client.put_events.call_args.kwargs["Entries"]
    assert request["EventBusName"] == "test-bus"


@pytest.mark.asyncio
async def test_publisher_over_eventbridge_sender_rejects_validation() -> None:
    client = MagicMock()
    client.put_events.return_value = {
        "FailedEntryCount": 1,
        "Entries": [{"ErrorCode": "ValidationException", "ErrorMessage": "Detail is not valid JSON"}],
    }
    publisher = ReliablePublisher(EventBridgeSender("kyc-bus", client=client), RetryConfig(max_retries=3), observer=None)

    with pytest.raises(PublishError) as exc_info:
        await publisher.publish_one(make_entry())

    assert exc_info.value.retry_count == 0
    assert "ValidationException" in str(exc_info.value)
    assert client.put_events.call_count == 1
