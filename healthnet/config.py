"""Settings for the HealthNet Pro API, read from the environment or ``.env``."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MEGABYTE = 1024 * 1024


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_parse_none_str="null",
    )

    app_name: str = Field(default="HealthNet Pro API", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    environment: Literal["development", "staging", "production", "test"] = Field(
        default="development", alias="ENVIRONMENT"
    )
    debug: bool = Field(default=False, alias="DEBUG")
    api_v1_prefix: str = Field(default="/api/v1", alias="API_V1_PREFIX")
    # Base of the signed resume links handed to clients
    public_base_url: str = Field(default="http://localhost:8000", alias="PUBLIC_BASE_URL")

    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    reload: bool = Field(default=False, alias="RELOAD")

    # PostgreSQL
    database_url: str = Field(..., alias="DATABASE_URL")
    db_pool_size: int = Field(default=10, ge=1, alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=20, ge=0, alias="DB_MAX_OVERFLOW")
    # Seconds before a pooled connection is replaced
    db_pool_recycle: int = Field(default=3600, alias="DB_POOL_RECYCLE")

    # Redis: profile cache, refresh-token blacklist, message fan-out
    redis_host: str = Field(..., alias="REDIS_HOST")
    redis_port: int = Field(..., alias="REDIS_PORT")
    redis_username: str = Field(default="default", alias="REDIS_USERNAME")
    redis_password: str = Field(default="", alias="REDIS_PASSWORD")
    redis_decode_responses: bool = Field(default=True, alias="REDIS_DECODE_RESPONSES")
    realtime_channel_prefix: str = Field(default="messages", alias="REALTIME_CHANNEL_PREFIX")

    # Session tokens issued after Firebase sign-in
    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(default=30, alias="ACCESS_TOKEN_EXPIRE_MINUTES")
    refresh_token_expire_days: int = Field(default=30, alias="REFRESH_TOKEN_EXPIRE_DAYS")

    # Service account as a file path or raw JSON; neither means default credentials
    firebase_credentials_path: str | None = Field(default=None, alias="FIREBASE_CREDENTIALS_PATH")
    firebase_config_json: str | None = Field(default=None, alias="FIREBASE_CONFIG_JSON")

    # Resume storage
    storage_root: str = Field(default="./storage", alias="STORAGE_ROOT")
    resume_max_bytes: int = Field(default=5 * MEGABYTE, alias="RESUME_MAX_BYTES")
    resume_url_ttl_seconds: int = Field(default=3600, alias="RESUME_URL_TTL_SECONDS")

    # Profile and cover photos go to an external image host
    image_host_upload_url: str = Field(
        default="https://api.cloudinary.com/v1_1/demo/image/upload",
        alias="IMAGE_HOST_UPLOAD_URL",
    )
    image_host_upload_preset: str = Field(default="", alias="IMAGE_HOST_UPLOAD_PRESET")
    image_max_bytes: int = Field(default=5 * MEGABYTE, alias="IMAGE_MAX_BYTES")
    image_host_timeout: float = Field(default=30.0, alias="IMAGE_HOST_TIMEOUT")

    # Comma-separated list of allowed origins
    cors_origins_str: str = Field(default="http://localhost:3000", alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: Literal["json", "console"] = Field(default="json", alias="LOG_FORMAT")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]


settings = get_settings()
