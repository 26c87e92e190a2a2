"""HTTP API configuration model."""

from pydantic import BaseModel, Field


class APIConfig(BaseModel):
    """HTTP API configuration."""

    prefix: str = Field(default="/cms/webhooks", description="Router path prefix")
    logs_page_size: int = Field(
        default=20,
        ge=1,
        le=100,
        description="Default page size for delivery log listings",
    )
