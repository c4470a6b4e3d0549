"""Configuration for the Seq log shipper."""
from __future__ import annotations

from functools import lru_cache
import logging
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger("seqlogging.config")

DEFAULT_SERVER_URL = "http://localhost:5341"


class Settings(BaseSettings):
    """Shipper configuration loaded from keyword options or ``SEQ_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SEQ_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    server_url: str = Field(default=DEFAULT_SERVER_URL, description="Base URL of the Seq server.")
    api_key: Optional[str] = Field(default=None, description="API key sent as the apiKey query parameter.")
    max_retries: int = Field(default=5, ge=1, description="Total delivery attempts per batch.")
    retry_delay: int = Field(default=5000, ge=0, description="Milliseconds to wait between delivery attempts.")
    max_batching_time: int = Field(
        default=2000,
        ge=0,
        description="Milliseconds an event may wait in the queue before a timed flush.",
    )
    flush_threshold_bytes: Optional[int] = Field(
        default=1024 * 1024,
        ge=1,
        description="Queued byte count that triggers an immediate flush. None disables eager flushing.",
    )
    event_size_limit: int = Field(
        default=256 * 1024,
        ge=1,
        description="Serialized size above which an event is replaced by a placeholder.",
    )
    request_timeout: int = Field(default=30000, ge=1, description="HTTP request timeout in milliseconds.")
    log_level: str = Field(default="INFO", description="Level used by setup_logging.")

    @field_validator("api_key", mode="before")
    def _blank_api_key(cls, value: Optional[str]) -> Optional[str]:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def retry_delay_seconds(self) -> float:
        return self.retry_delay / 1000

    @property
    def max_batching_seconds(self) -> float:
        return self.max_batching_time / 1000

    @property
    def request_timeout_seconds(self) -> float:
        return self.request_timeout / 1000


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings built from the environment."""

    settings = Settings()
    logger.debug("Loaded settings for %s", settings.server_url)
    return settings
