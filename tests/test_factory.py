import pytest

from fakes import FakeSender, make_entry
from sachain.config import Settings
from sachain.publishing import EventBridgeSender, PublisherHandle, create_publisher
from sachain.resilience import JitterStrategy, RetryConfig


def make_settings(**overrides) -> Settings:
    fields = {
        "EVENT_BUS_NAME": "kyc-bus",
        "AWS_REGION": "eu-west-1",
        "RETRY_MAX_RETRIES": 4,
        "RETRY_BASE_DELAY_SECONDS": 0.5,
        "RETRY_JITTER": "decorrelated",
        "PUBLISH_TIMEOUT_SECONDS": 3.0,
        "PUBLISH_CONCURRENCY": 2,
    }
    fields.update(overrides)
    return Settings(**fields)


def test_settings_build_retry_config() -> None:
    config = make_settings().retry_config()

    assert config.max_retries == 4
    assert config.base_delay_seconds == 0.5
    assert config.max_delay_seconds == 5.0
    assert config.jitter is JitterStrategy.DECORRELATED


def test_settings_read_environment(monkeypatch) -> None:
    monkeypatch.setenv("RETRY_MAX_RETRIES", "7")
    monkeypatch.setenv("RETRY_JITTER", "equal")

    settings = Settings()

    assert settings.RETRY_MAX_RETRIES == 7
    assert settings.retry_config().jitter is JitterStrategy.EQUAL


def test_create_publisher_from_settings() -> None:
    publisher = create_publisher(make_settings())

    assert isinstance(publisher.sender, EventBridgeSender)
    assert publisher.sender.event_bus_name == "kyc-bus"
    assert publisher.sender.region_name == "eu-west-1"
    assert publisher.timeout_seconds == 3.0
    assert publisher.concurrency_limit == 2
    assert publisher.retry_config.max_retries == 4


def test_overrides_win_over_settings() -> None:
    sender = FakeSender()
    publisher = create_publisher(
        make_settings(),
        sender,
        retry_config=RetryConfig(max_retries=0),
        concurrency_limit=9,
    )

    assert publisher.sender is sender
    assert publisher.retry_config.max_retries == 0
    assert publisher.concurrency_limit == 9


@pytest.mark.asyncio
async def test_handle_reuses_publisher_until_reset() -> None:
    sender = FakeSender()
    handle = PublisherHandle(make_settings(), sender, observer=None)

    assert handle.initialized is False
    first = handle.get()
    assert handle.get() is first
    assert handle.initialized is True

    result = await first.publish_one(make_entry())
    assert result.success is True

    handle.reset()
    assert handle.initialized is False
    assert handle.get() is not first
