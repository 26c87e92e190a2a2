"""In-memory implementation of WebhookStore."""

import asyncio
from datetime import datetime
from typing import Any
from uuid import UUID

from cms_webhooks.stores.store import WebhookStore
from cms_webhooks.webhooks.exceptions import ConcurrentUpdateError, WebhookNotFoundError
from cms_webhooks.webhooks.models import (
    DeliveryLogEntry,
    DeliveryStatus,
    OutboxEvent,
    OutboxStatus,
    WebhookEvent,
    WebhookRegistration,
    utc_now,
)


class InMemoryWebhookStore(WebhookStore):
    """In-memory implementation of WebhookStore for testing and development.

    Uses simple dict storage with linear scan for queries. Returned models
    are copies, so callers never mutate stored rows directly.
    Not suitable for production use.
    """

    def __init__(self) -> None:
        """Initialize empty storage."""
        self._webhooks: dict[UUID, WebhookRegistration] = {}
        self._logs: dict[UUID, DeliveryLogEntry] = {}
        self._outbox: dict[UUID, OutboxEvent] = {}
        self._lock = asyncio.Lock()

    # Registrations
    async def save_webhook(self, webhook: WebhookRegistration) -> UUID:
        self._webhooks[webhook.id] = webhook.model_copy(deep=True)
        return webhook.id

    async def get_webhook(self, webhook_id: UUID) -> WebhookRegistration | None:
        webhook = self._webhooks.get(webhook_id)
        return webhook.model_copy(deep=True) if webhook else None

    async def list_webhooks(
        self,
        tenant_id: UUID | None = None,
        *,
        active_only: bool = False,
        event: WebhookEvent | None = None,
    ) -> list[WebhookRegistration]:
        results = []
        for webhook in self._webhooks.values():
            if tenant_id is not None and webhook.tenant_id != tenant_id:
                continue
            if active_only and not webhook.is_active:
                continue
            if event is not None and event not in webhook.events:
                continue
            results.append(webhook.model_copy(deep=True))
        results.sort(key=lambda w: w.created_at, reverse=True)
        return results

    async def update_webhook(
        self, webhook_id: UUID, changes: dict[str, Any]
    ) -> WebhookRegistration | None:
        async with self._lock:
            current = self._webhooks.get(webhook_id)
            if current is None:
                return None
            merged = current.model_dump()
            merged.update(changes)
            merged["updated_at"] = utc_now()
            updated = WebhookRegistration.model_validate(merged)
            self._webhooks[webhook_id] = updated
            return updated.model_copy(deep=True)

    async def delete_webhook(self, webhook_id: UUID) -> bool:
        return self._webhooks.pop(webhook_id, None) is not None

    async def record_delivery_outcome(
        self,
        webhook_id: UUID,
        *,
        success: bool,
        triggered_at: datetime,
    ) -> None:
        async with self._lock:
            webhook = self._webhooks.get(webhook_id)
            # Registration may have been deleted while the request was in flight
            if webhook is None:
                return
            if success:
                webhook.success_count += 1
            else:
                webhook.failure_count += 1
            webhook.last_triggered_at = triggered_at

    # Delivery log
    async def save_log(self, entry: DeliveryLogEntry) -> UUID:
        self._logs[entry.id] = entry.model_copy(deep=True)
        return entry.id

    async def get_log(self, log_id: UUID) -> DeliveryLogEntry | None:
        entry = self._logs.get(log_id)
        return entry.model_copy(deep=True) if entry else None

    async def update_log(
        self,
        log_id: UUID,
        changes: dict[str, Any],
        *,
        expected_version: int | None = None,
    ) -> DeliveryLogEntry:
        async with self._lock:
            current = self._logs.get(log_id)
            if current is None:
                raise WebhookNotFoundError(f"Delivery log {log_id} not found")
            if expected_version is not None and current.version != expected_version:
                raise ConcurrentUpdateError(
                    f"Delivery log {log_id} was modified concurrently",
                    expected_version=expected_version,
                    actual_version=current.version,
                )
            updated = current.model_copy(
                update={
                    **changes,
                    "version": current.version + 1,
                    "updated_at": utc_now(),
                },
                deep=True,
            )
            self._logs[log_id] = updated
            return updated.model_copy(deep=True)

    def _filter_logs(
        self,
        tenant_id: UUID | None,
        webhook_id: UUID | None,
        status: DeliveryStatus | None,
        event: WebhookEvent | None,
    ) -> list[DeliveryLogEntry]:
        results = []
        for entry in self._logs.values():
            if tenant_id is not None and entry.tenant_id != tenant_id:
                continue
            if webhook_id is not None and entry.webhook_id != webhook_id:
                continue
            if status is not None and entry.status != status:
                continue
            if event is not None and entry.event != event:
                continue
            results.append(entry)
        return results

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
        results = self._filter_logs(tenant_id, webhook_id, status, event)
        results.sort(key=lambda e: e.created_at, reverse=True)
        return [e.model_copy(deep=True) for e in results[offset:offset + limit]]

    async def count_logs(
        self,
        *,
        tenant_id: UUID | None = None,
        webhook_id: UUID | None = None,
        status: DeliveryStatus | None = None,
        event: WebhookEvent | None = None,
    ) -> int:
        return len(self._filter_logs(tenant_id, webhook_id, status, event))

    async def count_logs_by_status(
        self, webhook_id: UUID, *, since: datetime
    ) -> dict[DeliveryStatus, int]:
        counts: dict[DeliveryStatus, int] = {}
        for entry in self._logs.values():
            if entry.webhook_id != webhook_id or entry.created_at < since:
                continue
            counts[entry.status] = counts.get(entry.status, 0) + 1
        return counts

    async def delete_logs_before(self, cutoff: datetime) -> int:
        async with self._lock:
            expired = [
                log_id for log_id, entry in self._logs.items()
                if entry.created_at < cutoff
            ]
            for log_id in expired:
                del self._logs[log_id]
            return len(expired)

    # Outbox
    async def enqueue_outbox(self, event: OutboxEvent) -> UUID:
        self._outbox[event.id] = event.model_copy(deep=True)
        return event.id

    async def claim_outbox(
        self, limit: int, *, stale_before: datetime | None = None
    ) -> list[OutboxEvent]:
        async with self._lock:
            pending = sorted(
                (e for e in self._outbox.values() if self._claimable(e, stale_before)),
                key=lambda e: e.created_at,
            )[:limit]
            claimed_at = utc_now()
            for event in pending:
                event.status = OutboxStatus.PROCESSING
                event.claimed_at = claimed_at
                event.attempts += 1
            return [e.model_copy(deep=True) for e in pending]

    async def complete_outbox(self, event_id: UUID, *, error: str | None = None) -> None:
        async with self._lock:
            event = self._outbox.get(event_id)
            if event is None:
                raise WebhookNotFoundError(f"Outbox event {event_id} not found")
            event.status = OutboxStatus.FAILED if error else OutboxStatus.DONE
            event.error = error
            event.processed_at = utc_now()

    @staticmethod
    def _claimable(event: OutboxEvent, stale_before: datetime | None) -> bool:
        if event.status == OutboxStatus.PENDING:
            return True
        return (
            stale_before is not None
            and event.status == OutboxStatus.PROCESSING
            and event.claimed_at is not None
            and event.claimed_at < stale_before
        )
