"""Settings for the queue client and the consumer process."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    base_url: str = Field(..., validation_alias="RSQUEUE_BASE_URL")
    # Basic auth is only sent when both parts are non-empty.
    username: str = Field("", validation_alias="RSQUEUE_USERNAME")
    password: str = Field("", validation_alias="RSQUEUE_PASSWORD")

    # Unset means no client-side timeout; callers bound calls themselves.
    connect_timeout_seconds: float | None = Field(None, validation_alias="RSQUEUE_CONNECT_TIMEOUT_SECONDS")
    read_timeout_seconds: float | None = Field(None, validation_alias="RSQUEUE_READ_TIMEOUT_SECONDS")

    transport_backend: str = Field("httpx", validation_alias="TRANSPORT_BACKEND")

    queue_name: str = Field("", validation_alias="CONSUMER_QUEUE_NAME")
    batch_size: int = Field(10, ge=1, validation_alias="CONSUMER_BATCH_SIZE")
    idle_poll_seconds: float = Field(1.0, ge=0, validation_alias="CONSUMER_IDLE_POLL_SECONDS")
    processor: str = Field("", validation_alias="CONSUMER_PROCESSOR")

    initial_backoff_seconds: float = Field(0.5, ge=0, validation_alias="INITIAL_BACKOFF_SECONDS")
    max_backoff_seconds: float = Field(30.0, ge=0, validation_alias="MAX_BACKOFF_SECONDS")
    backoff_multiplier: float = Field(2.0, ge=1, validation_alias="BACKOFF_MULTIPLIER")

    @property
    def has_credentials(self) -> bool:
        return bool(self.username) and bool(self.password)
