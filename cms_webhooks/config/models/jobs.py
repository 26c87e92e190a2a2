"""Job configuration models.

Configuration for scheduled webhook maintenance jobs.
"""

from pydantic import BaseModel, Field


class JobsConfig(BaseModel):
    """Scheduled job settings.

    Jobs are registered with Hatchet by the hosting application.
    """

    cron_cleanup_logs: str = Field(
        default="0 3 * * *",
        description="Cron schedule for delivery log cleanup (daily 3 AM UTC)",
    )
    cron_drain_outbox: str = Field(
        default="* * * * *",
        description="Cron schedule for outbox draining (every minute)",
    )
    outbox_batch_size: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Maximum outbox events dispatched per drain run",
    )
    outbox_lease_seconds: int = Field(
        default=300,
        ge=1,
        description="Seconds a claimed outbox event may stay processing before it is reclaimed",
    )
