"""Delivery, log retention and secret configuration models."""

from pydantic import BaseModel, Field


class DeliveryConfig(BaseModel):
    """Outbound HTTP delivery settings.

    Test deliveries get a shorter budget than dispatch and retry because
    they are a synchronous, user-facing action.
    """

    dispatch_timeout_ms: int = Field(
        default=30_000,
        ge=100,
        description="Hard timeout for dispatch and retry deliveries",
    )
    test_timeout_ms: int = Field(
        default=10_000,
        ge=100,
        description="Hard timeout for test deliveries",
    )
    max_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Maximum retries per delivery log entry",
    )
    response_body_limit: int = Field(
        default=10_000,
        ge=0,
        description="Characters of response body kept in the log",
    )
    user_agent: str = Field(
        default="CMS-Webhook/1.0",
        description="User-Agent header sent with every delivery",
    )


class LogRetentionConfig(BaseModel):
    """Delivery log retention and statistics settings."""

    retention_days: int = Field(
        default=30,
        ge=1,
        description="Log entries older than this are purged by cleanup",
    )
    stats_window_days: int = Field(
        default=7,
        ge=1,
        description="Window for the per-status breakdown in stats",
    )
    recent_entries: int = Field(
        default=10,
        ge=0,
        description="Number of recent entries returned by stats",
    )


class SecretConfig(BaseModel):
    """Signing secret generation settings."""

    prefix: str = Field(default="whsec_", description="Literal tag prepended to secrets")
    random_bytes: int = Field(
        default=24,
        ge=16,
        description="Random bytes per secret (hex encoded)",
    )
