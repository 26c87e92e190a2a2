"""Delivery log cleanup workflow.

Scheduled job that deletes delivery log entries older than the retention
window. Runs daily by default.
"""

from dataclasses import dataclass
from typing import Any

from cms_webhooks.observability.logging import get_logger
from cms_webhooks.webhooks.logs import DeliveryLogs

logger = get_logger(__name__)


@dataclass
class CleanupLogsInput:
    """Input for log cleanup workflow."""

    dry_run: bool = False


@dataclass
class CleanupLogsOutput:
    """Output from log cleanup workflow."""

    deleted_count: int
    success: bool
    error: str | None = None


class CleanupWebhookLogsWorkflow:
    """Workflow to purge expired delivery log entries.

    Idempotent: a second run in the same window deletes nothing.
    Registration success/failure counters are not affected.
    """

    WORKFLOW_NAME = "cleanup-webhook-logs"
    CRON_SCHEDULE = "0 3 * * *"  # Daily at 3 AM UTC

    def __init__(self, delivery_logs: DeliveryLogs) -> None:
        self._logs = delivery_logs

    async def run(self, input_data: CleanupLogsInput) -> CleanupLogsOutput:
        """Execute the cleanup workflow.

        Args:
            input_data: Workflow input; dry runs skip deletion

        Returns:
            CleanupLogsOutput with the number of entries deleted
        """
        if input_data.dry_run:
            logger.info("cleanup_webhook_logs_dry_run")
            return CleanupLogsOutput(deleted_count=0, success=True)

        try:
            deleted = await self._logs.cleanup()
        except Exception as e:
            logger.error("cleanup_webhook_logs_failed", error=str(e))
            return CleanupLogsOutput(deleted_count=0, success=False, error=str(e))

        return CleanupLogsOutput(deleted_count=deleted, success=True)


def register_workflow(
    hatchet: Any,
    delivery_logs: DeliveryLogs,
    cron_schedule: str | None = None,
) -> Any:
    """Register the log cleanup workflow with Hatchet.

    Args:
        hatchet: Hatchet SDK instance
        delivery_logs: Delivery log service used for purging
        cron_schedule: Override for the default schedule

    Returns:
        Registered workflow
    """
    workflow_instance = CleanupWebhookLogsWorkflow(delivery_logs)

    @hatchet.workflow(
        name=CleanupWebhookLogsWorkflow.WORKFLOW_NAME,
        on_crons=[cron_schedule or CleanupWebhookLogsWorkflow.CRON_SCHEDULE],
    )
    class HatchetCleanupWebhookLogsWorkflow:
        """Hatchet workflow wrapper for log cleanup."""

        @hatchet.step(retries=3, retry_delay="120s")
        async def cleanup_logs(self, context: Any) -> dict:
            """Execute the cleanup step."""
            input_data = context.workflow_input() or {}
            result = await workflow_instance.run(
                CleanupLogsInput(dry_run=bool(input_data.get("dry_run", False)))
            )
            return {
                "deleted_count": result.deleted_count,
                "success": result.success,
                "error": result.error,
            }

    return HatchetCleanupWebhookLogsWorkflow
