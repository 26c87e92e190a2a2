"""Hatchet workflow definitions.

- CleanupWebhookLogsWorkflow: Purges delivery log entries past retention
- DrainWebhookOutboxWorkflow: Dispatches queued outbox events
"""

from cms_webhooks.jobs.workflows.log_cleanup import (
    CleanupLogsInput,
    CleanupLogsOutput,
    CleanupWebhookLogsWorkflow,
)
from cms_webhooks.jobs.workflows.outbox_drain import (
    DrainOutboxInput,
    DrainOutboxOutput,
    DrainWebhookOutboxWorkflow,
)

__all__ = [
    "CleanupWebhookLogsWorkflow",
    "CleanupLogsInput",
    "CleanupLogsOutput",
    "DrainWebhookOutboxWorkflow",
    "DrainOutboxInput",
    "DrainOutboxOutput",
]
