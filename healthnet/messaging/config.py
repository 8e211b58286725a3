"""Messaging client configuration."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    api_url: str = Field(default="http://localhost:8000", alias="HEALTHNET_API_URL")
    api_prefix: str = Field(default="/api/v1", alias="HEALTHNET_API_PREFIX")
    # Seconds before a request is abandoned and reported as failed
    timeout: float = Field(default=10.0, alias="HEALTHNET_CLIENT_TIMEOUT")
    redis_url: str = Field(default="redis://localhost:6379/0", alias="HEALTHNET_REDIS_URL")
    channel_prefix: str = Field(default="messages", alias="HEALTHNET_REALTIME_CHANNEL_PREFIX")
    reconnect_initial_delay: float = Field(default=0.5, alias="HEALTHNET_RECONNECT_INITIAL_DELAY")
    reconnect_max_delay: float = Field(default=30.0, alias="HEALTHNET_RECONNECT_MAX_DELAY")


@lru_cache
def get_client_settings() -> ClientSettings:
    """Get cached client settings instance."""
    return ClientSettings()
