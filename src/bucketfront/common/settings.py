"""Application configuration models shared by services."""

from __future__ import annotations

from typing import Annotated, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def env_field(default, env_name: str):
    return Field(default, validation_alias=env_name)


class StaticSiteSettings(BaseSettings):
    """Runtime settings for the bucket-backed static site service."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", populate_by_name=True)

    bucket: str = env_field(..., "BUCKETFRONT_BUCKET")
    region: Optional[str] = env_field(None, "BUCKETFRONT_REGION")
    profile: Optional[str] = env_field(None, "BUCKETFRONT_PROFILE")
    endpoint_url: Optional[str] = env_field(None, "BUCKETFRONT_ENDPOINT_URL")
    spa: bool = env_field(False, "BUCKETFRONT_SPA")
    index: str = env_field("index.html", "BUCKETFRONT_INDEX")
    request_id_header: str = env_field("X-Request-ID", "BUCKETFRONT_REQUEST_ID_HEADER")
    cache_max_age_seconds: Optional[int] = env_field(None, "BUCKETFRONT_CACHE_MAX_AGE")
    skip_prefixes: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["/healthz", "/metrics"],
        validation_alias="BUCKETFRONT_SKIP_PREFIXES",
    )
    metrics_token: Optional[SecretStr] = env_field(None, "BUCKETFRONT_METRICS_TOKEN")
    host: str = env_field("0.0.0.0", "BUCKETFRONT_HOST")
    port: int = env_field(8080, "BUCKETFRONT_PORT")
    log_level: str = env_field("INFO", "BUCKETFRONT_LOG_LEVEL")
    otel_exporter_endpoint: Optional[str] = env_field(None, "BUCKETFRONT_OTEL_EXPORTER_ENDPOINT")
    otel_exporter_headers: Optional[str] = env_field(None, "BUCKETFRONT_OTEL_EXPORTER_HEADERS")
    otel_sampler_ratio: float = env_field(0.1, "BUCKETFRONT_OTEL_SAMPLER_RATIO")

    @field_validator("skip_prefixes", mode="before")
    @classmethod
    def _split_skip_prefixes(cls, value):
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("cache_max_age_seconds")
    @classmethod
    def _non_negative_max_age(cls, value):
        if value is not None and value < 0:
            raise ValueError("cache max age must be >= 0")
        return value
