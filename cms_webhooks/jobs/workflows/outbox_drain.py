"""Outbox drain workflow.

Scheduled job that dispatches queued CMS events from the webhook outbox.
Runs every minute by default.
"""

from dataclasses import dataclass
from typing import Any

from cms_webhooks.observability.logging import get_logger
from cms_webhooks.webhooks.outbox import WebhookOutbox

logger = get_logger(__name__)


@dataclass
class DrainOutboxInput:
    """Input for outbox drain workflow."""

    batch_size: int = 100


@dataclass
class DrainOutboxOutput:
    """Output from outbox drain workflow."""

    processed: int
    errored: int
    dispatched: int
    failed: int
    success: bool
    error: str | None = None


class DrainWebhookOutboxWorkflow:
    """Workflow to dispatch queued outbox events.

    Each run claims at most `batch_size` events, so a backlog is worked
    off over several runs instead of one long one.
    """

    WORKFLOW_NAME = "drain-webhook-outbox"
    CRON_SCHEDULE = "* * * * *"  # Every minute

    def __init__(self, outbox: WebhookOutbox) -> None:
        self._outbox = outbox

    async def run(self, input_data: DrainOutboxInput) -> DrainOutboxOutput:
        if input_data.batch_size < 1:
            return DrainOutboxOutput(
                processed=0,
                errored=0,
                dispatched=0,
                failed=0,
                success=False,
                error=f"Invalid batch_size: {input_data.batch_size}",
            )

        try:
            result = await self._outbox.drain(input_data.batch_size)
        except Exception as e:
            logger.error("drain_webhook_outbox_failed", error=str(e))
            return DrainOutboxOutput(
                processed=0,
                errored=0,
                dispatched=0,
                failed=0,
                success=False,
                error=str(e),
            )

        return DrainOutboxOutput(
            processed=result.processed,
            errored=result.errored,
            dispatched=result.dispatched,
            failed=result.failed,
            success=True,
        )


def register_workflow(
    hatchet: Any,
    outbox: WebhookOutbox,
    cron_schedule: str | None = None,
    batch_size: int = 100,
) -> Any:
    """Register the outbox drain workflow with Hatchet.

    Args:
        hatchet: Hatchet SDK instance
        outbox: Outbox to drain
        cron_schedule: Override for the default schedule
        batch_size: Default events per run when the input omits it

    Returns:
        Registered workflow
    """
    workflow_instance = DrainWebhookOutboxWorkflow(outbox)

    @hatchet.workflow(
        name=DrainWebhookOutboxWorkflow.WORKFLOW_NAME,
        on_crons=[cron_schedule or DrainWebhookOutboxWorkflow.CRON_SCHEDULE],
    )
    class HatchetDrainWebhookOutboxWorkflow:
        """Hatchet workflow wrapper for outbox draining."""

        @hatchet.step(retries=1, retry_delay="30s")
        async def drain_outbox(self, context: Any) -> dict:
            """Execute the drain step."""
            input_data = context.workflow_input() or {}
            result = await workflow_instance.run(
                DrainOutboxInput(batch_size=int(input_data.get("batch_size", batch_size)))
            )
            return {
                "processed": result.processed,
                "errored": result.errored,
                "dispatched": result.dispatched,
                "failed": result.failed,
                "success": result.success,
                "error": result.error,
            }

    return HatchetDrainWebhookOutboxWorkflow
