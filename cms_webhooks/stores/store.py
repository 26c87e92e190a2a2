"""WebhookStore abstract interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any
from uuid import UUID

from cms_webhooks.webhooks.models import (
    DeliveryLogEntry,
    DeliveryStatus,
    OutboxEvent,
    WebhookEvent,
    WebhookRegistration,
)


class WebhookStore(ABC):
    """Abstract interface for webhook persistence.

    Holds webhook registrations, their delivery log and the event outbox.
    Implementations must make `record_delivery_outcome` an atomic
    increment, since concurrent deliveries to the same webhook race on
    its counters, and must enforce `expected_version` on `update_log`.
    """

    # Registrations
    @abstractmethod
    async def save_webhook(self, webhook: WebhookRegistration) -> UUID:
        """Create a webhook registration."""
        pass

    @abstractmethod
    async def get_webhook(self, webhook_id: UUID) -> WebhookRegistration | None:
        """Get a webhook registration by ID."""
        pass

    @abstractmethod
    async def list_webhooks(
        self,
        tenant_id: UUID | None = None,
        *,
        active_only: bool = False,
        event: WebhookEvent | None = None,
    ) -> list[WebhookRegistration]:
        """List registrations, newest first, optionally filtered."""
        pass

    @abstractmethod
    async def update_webhook(
        self, webhook_id: UUID, changes: dict[str, Any]
    ) -> WebhookRegistration | None:
        """Patch registration fields. Returns None if it doesn't exist."""
        pass

    @abstractmethod
    async def delete_webhook(self, webhook_id: UUID) -> bool:
        """Delete a registration row. Its log entries are kept."""
        pass

    @abstractmethod
    async def record_delivery_outcome(
        self,
        webhook_id: UUID,
        *,
        success: bool,
        triggered_at: datetime,
    ) -> None:
        """Atomically increment success or failure count and set last_triggered_at."""
        pass

    # Delivery log
    @abstractmethod
    async def save_log(self, entry: DeliveryLogEntry) -> UUID:
        """Create a delivery log entry."""
        pass

    @abstractmethod
    async def get_log(self, log_id: UUID) -> DeliveryLogEntry | None:
        """Get a delivery log entry by ID."""
        pass

    @abstractmethod
    async def update_log(
        self,
        log_id: UUID,
        changes: dict[str, Any],
        *,
        expected_version: int | None = None,
    ) -> DeliveryLogEntry:
        """Patch a log entry and bump its version.

        Raises:
            WebhookNotFoundError: If the entry doesn't exist
            ConcurrentUpdateError: If expected_version is stale
        """
        pass

    @abstractmethod
    async def list_logs(
        self,
        *,
        tenant_id: UUID | None = None,
        webhook_id: UUID | None = None,
        status: DeliveryStatus | None = None,
        event: WebhookEvent | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[DeliveryLogEntry]:
        """List log entries, newest first."""
        pass

    @abstractmethod
    async def count_logs(
        self,
        *,
        tenant_id: UUID | None = None,
        webhook_id: UUID | None = None,
        status: DeliveryStatus | None = None,
        event: WebhookEvent | None = None,
    ) -> int:
        """Count log entries matching the filters."""
        pass

    @abstractmethod
    async def count_logs_by_status(
        self, webhook_id: UUID, *, since: datetime
    ) -> dict[DeliveryStatus, int]:
        """Group a webhook's entries created at or after `since` by status."""
        pass

    @abstractmethod
    async def delete_logs_before(self, cutoff: datetime) -> int:
        """Delete entries created before `cutoff`. Returns count deleted."""
        pass

    # Outbox
    @abstractmethod
    async def enqueue_outbox(self, event: OutboxEvent) -> UUID:
        """Queue a content event for asynchronous dispatch."""
        pass

    @abstractmethod
    async def claim_outbox(
        self, limit: int, *, stale_before: datetime | None = None
    ) -> list[OutboxEvent]:
        """Mark up to `limit` events as processing and return them, oldest first.

        Pending events are always claimable. When `stale_before` is given,
        events still processing from a claim made before that time are
        claimed again, so a worker that died mid-drain does not strand them.
        """
        pass

    @abstractmethod
    async def complete_outbox(self, event_id: UUID, *, error: str | None = None) -> None:
        """Mark a claimed event done, or failed when `error` is given."""
        pass
