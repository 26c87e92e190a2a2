"""Outbox that decouples content mutations from webhook delivery.

Content code calls `emit` (ideally in the same transaction as the
mutation) and returns immediately; the drain job later dispatches each
queued event.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Any
from uuid import UUID

from cms_webhooks.observability.logging import get_logger
from cms_webhooks.observability.metrics import WEBHOOK_OUTBOX_DRAINED
from cms_webhooks.stores.store import WebhookStore
from cms_webhooks.webhooks.dispatcher import WebhookDispatcher
from cms_webhooks.webhooks.models import OutboxEvent, WebhookEvent, utc_now

logger = get_logger(__name__)


@dataclass
class DrainResult:
    """Totals for one outbox drain run."""

    processed: int = 0
    errored: int = 0
    dispatched: int = 0
    failed: int = 0


class WebhookOutbox:
    """Queue CMS events and dispatch them in batches."""

    def __init__(
        self,
        store: WebhookStore,
        dispatcher: WebhookDispatcher,
        lease_seconds: int = 300,
    ) -> None:
        """Initialize outbox.

        Args:
            store: Outbox persistence
            dispatcher: Dispatcher used when draining
            lease_seconds: How long a claimed event may stay processing
                before another drain run claims it again
        """
        self._store = store
        self._dispatcher = dispatcher
        self._lease = timedelta(seconds=lease_seconds)

    async def emit(
        self,
        tenant_id: UUID,
        event: WebhookEvent,
        entity_type: str,
        entity_id: str,
        entity_name: str | None = None,
        changes: dict[str, Any] | None = None,
        actor_id: str | None = None,
        actor_name: str | None = None,
    ) -> UUID:
        """Queue an event for later dispatch and return its outbox ID.

        Only webhooks owned by `tenant_id` receive the event.
        """
        outbox_event = OutboxEvent(
            tenant_id=tenant_id,
            event=event,
            entity_type=entity_type,
            entity_id=entity_id,
            entity_name=entity_name,
            changes=changes,
            actor_id=actor_id,
            actor_name=actor_name,
        )
        await self._store.enqueue_outbox(outbox_event)
        logger.debug(
            "webhook_outbox_enqueued",
            outbox_id=str(outbox_event.id),
            tenant_id=str(tenant_id),
            event_type=event.value,
            entity_type=entity_type,
        )
        return outbox_event.id

    async def drain(self, limit: int = 100) -> DrainResult:
        """Dispatch up to `limit` queued events, oldest first.

        Events are dispatched one after another so receivers see them in
        the order they were emitted. A dispatch that raises marks only its
        own outbox event failed. Events left processing longer than the
        lease by a crashed run are picked up again.
        """
        result = DrainResult()
        claimed = await self._store.claim_outbox(limit, stale_before=utc_now() - self._lease)
        for outbox_event in claimed:
            try:
                outcome = await self._dispatcher.dispatch(
                    outbox_event.event,
                    outbox_event.entity_type,
                    outbox_event.entity_id,
                    outbox_event.entity_name,
                    outbox_event.changes,
                    outbox_event.actor_id,
                    outbox_event.actor_name,
                    tenant_id=outbox_event.tenant_id,
                )
            except Exception as e:
                logger.error(
                    "webhook_outbox_dispatch_failed",
                    outbox_id=str(outbox_event.id),
                    error=str(e),
                    error_type=type(e).__name__,
                )
                await self._store.complete_outbox(outbox_event.id, error=str(e))
                WEBHOOK_OUTBOX_DRAINED.labels(outcome="error").inc()
                result.errored += 1
                continue

            await self._store.complete_outbox(outbox_event.id)
            WEBHOOK_OUTBOX_DRAINED.labels(outcome="done").inc()
            result.processed += 1
            result.dispatched += outcome.dispatched
            result.failed += outcome.failed

        if result.processed or result.errored:
            logger.info(
                "webhook_outbox_drained",
                processed=result.processed,
                errored=result.errored,
                dispatched=result.dispatched,
                failed=result.failed,
            )
        return result
