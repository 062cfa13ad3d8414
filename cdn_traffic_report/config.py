"""
Configuration management for cdn_traffic_report.

Uses pydantic-settings for type-safe configuration with automatic
environment variable loading and validation.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cdn_traffic_report.constants import (
    DEFAULT_DNS_TIMEOUT,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_WORKERS,
    FASTLY_API_URL,
    FASTLY_RATE_LIMIT,
)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    The API token is only checked when a command actually talks to Fastly,
    so tests and library use work without one.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra env vars
    )

    # Fastly Configuration
    fastly_api_token: str = Field(
        default="",
        description="Fastly API token (required)",
    )
    fastly_api_url: str = Field(
        default=FASTLY_API_URL,
        description="Fastly API base URL",
    )
    fastly_customer_id: str | None = Field(
        default=None,
        description="Fastly customer ID for the users report (optional)",
    )

    # Concurrency and timeouts
    max_workers: int = Field(
        default=DEFAULT_WORKERS,
        ge=1,
        description="Maximum number of services enriched concurrently",
    )
    request_timeout: float = Field(
        default=DEFAULT_REQUEST_TIMEOUT,
        gt=0,
        description="Timeout in seconds for a single Fastly API call",
    )
    dns_timeout: float = Field(
        default=DEFAULT_DNS_TIMEOUT,
        gt=0,
        description="Timeout in seconds for a single DNS query",
    )
    api_rate_limit: float = Field(
        default=FASTLY_RATE_LIMIT,
        gt=0,
        description="Maximum Fastly API requests per second across all workers",
    )
    report_deadline: float | None = Field(
        default=None,
        gt=0,
        description="Overall deadline in seconds; unstarted services are skipped after it",
    )

    @field_validator("fastly_api_token", mode="before")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        """Strip whitespace from string values."""
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("fastly_customer_id", mode="before")
    @classmethod
    def empty_string_to_none(cls, v: str | None) -> str | None:
        """Convert empty strings to None for optional fields."""
        if isinstance(v, str):
            v = v.strip()
            return v if v else None
        return v

    @field_validator("fastly_api_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


def get_fastly_api_token() -> str:
    """Get Fastly API token from settings."""
    token = get_settings().fastly_api_token
    if not token:
        raise ValueError("FASTLY_API_TOKEN not set in environment or .env file")
    return token


def get_fastly_api_url() -> str:
    """Get Fastly API base URL from settings."""
    return get_settings().fastly_api_url


def get_fastly_customer_id() -> str | None:
    """Get Fastly customer ID from settings (optional)."""
    return get_settings().fastly_customer_id


def get_max_workers() -> int:
    """Get the enrichment worker pool size."""
    return get_settings().max_workers


def get_request_timeout() -> float:
    return get_settings().request_timeout


def get_dns_timeout() -> float:
    return get_settings().dns_timeout


def get_api_rate_limit() -> float:
    return get_settings().api_rate_limit


def get_report_deadline() -> float | None:
    """Get the overall report deadline in seconds (None = no deadline)."""
    return get_settings().report_deadline
