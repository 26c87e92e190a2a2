"""Delivery log statistics and retention cleanup."""

from datetime import datetime, timedelta
from uuid import UUID

from cms_webhooks.config.models.delivery import LogRetentionConfig
from cms_webhooks.observability.logging import get_logger
from cms_webhooks.observability.metrics import WEBHOOK_LOGS_PURGED
from cms_webhooks.stores.store import WebhookStore
from cms_webhooks.webhooks.exceptions import WebhookNotFoundError
from cms_webhooks.webhooks.models import (
    DeliveryLogSummary,
    DeliveryStatus,
    WebhookStats,
    utc_now,
)

logger = get_logger(__name__)


class DeliveryLogs:
    """Read-side queries and purging over the delivery log."""

    def __init__(self, store: WebhookStore, config: LogRetentionConfig | None = None) -> None:
        self._store = store
        self._config = config or LogRetentionConfig()

    async def stats(self, webhook_id: UUID, *, now: datetime | None = None) -> WebhookStats:
        """Lifetime counters, a per-status breakdown and the latest entries.

        Raises:
            WebhookNotFoundError: If the webhook doesn't exist
        """
        webhook = await self._store.get_webhook(webhook_id)
        if webhook is None:
            raise WebhookNotFoundError(f"Webhook {webhook_id} not found")

        since = (now or utc_now()) - timedelta(days=self._config.stats_window_days)
        grouped = await self._store.count_logs_by_status(webhook_id, since=since)
        recent = await self._store.list_logs(
            webhook_id=webhook_id, limit=self._config.recent_entries
        )

        return WebhookStats(
            webhook_id=webhook.id,
            success_count=webhook.success_count,
            failure_count=webhook.failure_count,
            last_triggered_at=webhook.last_triggered_at,
            recent_by_status={status: grouped.get(status, 0) for status in DeliveryStatus},
            recent_logs=[DeliveryLogSummary.from_entry(entry) for entry in recent],
        )

    async def cleanup(self, *, now: datetime | None = None) -> int:
        """Delete entries older than the retention window.

        Safe to run repeatedly. Registration counters are never touched.

        Returns:
            Number of entries deleted
        """
        cutoff = (now or utc_now()) - timedelta(days=self._config.retention_days)
        deleted = await self._store.delete_logs_before(cutoff)
        WEBHOOK_LOGS_PURGED.inc(deleted)
        logger.info(
            "webhook_logs_purged",
            deleted=deleted,
            cutoff=cutoff.isoformat(),
        )
        return deleted
