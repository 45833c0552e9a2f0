import pytest
from botocore.exceptions import ClientError, EndpointConnectionError, ReadTimeoutError

from fakes import NamedError
from sachain.errors import (
    ErrorCategory,
    ErrorClassifier,
    Failure,
    classify,
    get_technical_message,
    get_user_message,
    is_retryable,
    to_failure,
)
from sachain.publishing import InBandPublishFailure, PublishError, SendResponse
from sachain.resilience import OperationTimeoutError


def client_error(code: str, message: str = "boom", status: int = 400, operation: str = "PutItem") -> ClientError:
    return ClientError(
        {
            "Error": {"Code": code, "Message": message},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


@pytest.mark.parametrize(
    "name, category, retryable",
    [
        ("ProvisionedThroughputExceededException", ErrorCategory.RATE_LIMIT, True),
        ("ThrottlingException", ErrorCategory.RATE_LIMIT, True),
        ("ResourceNotFoundException", ErrorCategory.RESOURCE_NOT_FOUND, False),
        ("ConditionalCheckFailedException", ErrorCategory.VALIDATION, False),
        ("ValidationException", ErrorCategory.VALIDATION, False),
        ("AccessDeniedException", ErrorCategory.AUTHORIZATION, False),
        ("InternalServerError", ErrorCategory.SYSTEM, True),
        ("RequestTimeout", ErrorCategory.TRANSIENT, True),
        ("NetworkingError", ErrorCategory.TRANSIENT, True),
        ("NoSuchBucket", ErrorCategory.SYSTEM, False),
        ("NoSuchKey", ErrorCategory.RESOURCE_NOT_FOUND, False),
        ("AccessDenied", ErrorCategory.AUTHORIZATION, False),
        ("EntityTooLarge", ErrorCategory.VALIDATION, False),
        ("SlowDown", ErrorCategory.RATE_LIMIT, True),
        ("InternalFailure", ErrorCategory.SYSTEM, True),
        ("MalformedDetail", ErrorCategory.VALIDATION, False),
    ],
)
def test_service_tables(name, category, retryable) -> None:
    details = classify(NamedError(name, "something failed"))

    assert details.category is category
    assert details.retryable is retryable
    assert details.error_code == name


def test_service_hint_selects_table() -> None:
    s3 = classify(client_error("ServiceUnavailable", status=503, operation="PutObject"))
    dynamo = classify(client_error("ServiceUnavailable", status=503, operation="PutItem"))

    assert s3.technical_message == "S3 service unavailable"
    assert dynamo.technical_message == "DynamoDB service unavailable"
    assert s3.category is dynamo.category is ErrorCategory.SYSTEM


def test_allow_list_wins_over_service_table() -> None:
    details = classify(NamedError("AccessDenied"), retryable_names={"AccessDenied"})

    assert details.category is ErrorCategory.TRANSIENT
    assert details.retryable is True


@pytest.mark.parametrize(
    "message",
    [
        "Request was throttled",
        "socket timeout while reading",
        "Network is unreachable",
        "connection reset by peer",
        "Service Unavailable",
        "Internal Server Error",
        "Provisioned throughput exceeded for table",
        "Rate exceeded",
    ],
)
def test_retry_indicative_messages_are_transient(message) -> None:
    details = classify(RuntimeError(message))

    assert details.category is ErrorCategory.TRANSIENT
    assert details.retryable is True


@pytest.mark.parametrize(
    "status, category, retryable",
    [
        (500, ErrorCategory.SYSTEM, True),
        (503, ErrorCategory.SYSTEM, True),
        (429, ErrorCategory.RATE_LIMIT, True),
        (403, ErrorCategory.AUTHORIZATION, False),
        (401, ErrorCategory.AUTHORIZATION, False),
        (404, ErrorCategory.RESOURCE_NOT_FOUND, False),
        (400, ErrorCategory.VALIDATION, False),
        (409, ErrorCategory.VALIDATION, False),
    ],
)
def test_status_code_fallback(status, category, retryable) -> None:
    details = classify({"name": "WeirdVendorError", "message": "nope", "statusCode": status})

    assert details.category is category
    assert details.retryable is retryable
    assert details.http_status_code == status


def test_unknown_object_is_system_and_not_retryable() -> None:
    class Opaque:
        pass

    details = classify(Opaque())

    assert details.category is ErrorCategory.SYSTEM
    assert details.retryable is False
    assert details.user_message == ErrorCategory.SYSTEM.user_message


@pytest.mark.parametrize("value", [None, 42, "", object(), {"unexpected": True}, b"\x00"])
def test_classify_is_total(value) -> None:
    details = classify(value)

    assert isinstance(details.category, ErrorCategory)
    assert isinstance(details.retryable, bool)


def test_unprintable_object_does_not_raise() -> None:
    class Hostile:
        def __str__(self) -> str:
            raise RuntimeError("no")

    assert classify(Hostile()).category is ErrorCategory.SYSTEM


def test_classify_is_deterministic() -> None:
    error = client_error("ThrottlingException", status=400)

    first = classify(error, context={"operation": "put"})
    second = classify(error, context={"operation": "put"})

    assert first == second


def test_botocore_client_error_is_normalized() -> None:
    failure = to_failure(client_error("ValidationException", "One or more parameter values were invalid"))

    assert failure.name == "ValidationException"
    assert failure.code == "ValidationException"
    assert failure.http_status == 400
    assert failure.service == "dynamodb"

    details = classify(failure)
    assert details.technical_message.startswith("DynamoDB validation error: One or more")


def test_botocore_transport_errors_are_transient() -> None:
    endpoint = EndpointConnectionError(endpoint_url="https://events.us-east-1.amazonaws.com")
    read_timeout = ReadTimeoutError(endpoint_url="https://events.us-east-1.amazonaws.com")

    assert classify(endpoint).category is ErrorCategory.TRANSIENT
    assert classify(read_timeout).retryable is True


def test_bare_string_reason() -> None:
    assert classify("ThrottlingException").category is ErrorCategory.RATE_LIMIT
    assert classify("Event publishing timed out after 10s").category is ErrorCategory.TRANSIENT
    assert classify("completely unknown").retryable is False


def test_mapping_with_sdk_metadata() -> None:
    details = classify({
        "name": "SlowDown",
        "message": "Please reduce your request rate",
        "$metadata": {"httpStatusCode": 503, "service": "S3"},
    })

    assert details.category is ErrorCategory.RATE_LIMIT
    assert details.http_status_code == 503


def test_timeout_category_is_not_reclassified() -> None:
    details = classify(OperationTimeoutError("EventBridge-publish", 0.5))

    assert details.category is ErrorCategory.TRANSIENT
    assert details.retryable is True


def test_typed_publish_error_keeps_its_category() -> None:
    error = PublishError("failed", ErrorCategory.VALIDATION, retry_count=0)

    details = classify(error)

    assert details.category is ErrorCategory.VALIDATION
    assert details.retryable is False


def test_in_band_failure_uses_event_bridge_table() -> None:
    failure = InBandPublishFailure(SendResponse(
        failed_entry_count=1,
        error_code="ThrottlingException",
        error_message="Rate exceeded",
    ))

    details = classify(failure)

    assert details.category is ErrorCategory.RATE_LIMIT
    assert details.technical_message == "EventBridge throttling exception"


def test_category_lookup_tables() -> None:
    assert ErrorCategory.TRANSIENT.http_status == 503
    assert ErrorCategory.RATE_LIMIT.http_status == 429
    assert ErrorCategory.VALIDATION.http_status == 400
    assert ErrorCategory.AUTHORIZATION.http_status == 403
    assert ErrorCategory.RESOURCE_NOT_FOUND.http_status == 404
    assert ErrorCategory.SYSTEM.http_status == 500
    assert {c for c in ErrorCategory if c.default_retryable} == {
        ErrorCategory.TRANSIENT,
        ErrorCategory.RATE_LIMIT,
        ErrorCategory.SYSTEM,
    }


def test_message_helpers() -> None:
    error = NamedError("EntityTooLarge")

    assert is_retryable(error) is False
    assert get_user_message(error) == "File is too large to upload."
    assert get_technical_message(error) == "S3 entity too large"


def test_details_to_dict() -> None:
    details = classify(NamedError("NoSuchKey"), context={"key": "kyc/doc-1.jpg"})

    payload = details.to_dict()

    assert payload["category"] == "resource_not_found"
    assert payload["status"] == 404
    assert payload["error_code"] == "NoSuchKey"
    assert payload["context"] == {"key": "kyc/doc-1.jpg"}


def test_custom_rule_tables() -> None:
    classifier = ErrorClassifier(service_rules={})

    details = classifier.classify(Failure(name="ThrottlingException", message="slow down"))

    # no tables: falls through to the pattern match
    assert details.category is ErrorCategory.TRANSIENT
