from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings

from sachain.logging import configure_logging
from sachain.resilience.retry import JitterStrategy, RetryConfig


class Settings(BaseSettings):
    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False  # True in Lambda (CloudWatch JSON), False for local dev

    # AWS (passed through untouched to boto3)
    AWS_REGION: str = "us-east-1"
    EVENT_BUS_NAME: str = "default"
    EVENTBRIDGE_ENDPOINT_URL: str | None = None

    # Retry
    RETRY_MAX_RETRIES: int = 3
    RETRY_BASE_DELAY_SECONDS: float = 0.2
    RETRY_MAX_DELAY_SECONDS: float = 5.0
    RETRY_JITTER: Literal["none", "full", "equal", "decorrelated"] = "full"

    # Publishing
    PUBLISH_TIMEOUT_SECONDS: float = 10.0
    PUBLISH_CONCURRENCY: int = 5

    def retry_config(self) -> RetryConfig:
        return RetryConfig(
            max_retries=self.RETRY_MAX_RETRIES,
            base_delay_seconds=self.RETRY_BASE_DELAY_SECONDS,
            max_delay_seconds=self.RETRY_MAX_DELAY_SECONDS,
            jitter=JitterStrategy(self.RETRY_JITTER),
        )

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()


def setup_logging(settings: Settings | None = None) -> None:
    """Configure logging from LOG_LEVEL / LOG_JSON. Call once at process start."""
    settings = settings or get_settings()
    configure_logging(level=settings.LOG_LEVEL, json_logs=settings.LOG_JSON)
