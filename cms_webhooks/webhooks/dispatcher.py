"""Webhook fan-out dispatcher with HMAC signing, logging and retry."""

import asyncio
from typing import Any
from uuid import UUID

from cms_webhooks.config.models.delivery import DeliveryConfig
from cms_webhooks.observability.logging import get_logger
from cms_webhooks.observability.metrics import (
    WEBHOOK_DELIVERIES,
    WEBHOOK_DELIVERY_LATENCY,
    WEBHOOK_DISPATCH_FANOUT,
    WEBHOOK_RETRIES,
)
from cms_webhooks.stores.store import WebhookStore
from cms_webhooks.webhooks.exceptions import DeliveryError, WebhookNotFoundError
from cms_webhooks.webhooks.executor import DeliveryExecutor
from cms_webhooks.webhooks.headers import build_request_headers
from cms_webhooks.webhooks.matcher import WebhookMatcher
from cms_webhooks.webhooks.models import (
    DeliveryAttempt,
    DeliveryLogEntry,
    DeliveryStatus,
    DispatchResult,
    EnvelopeActor,
    EventEnvelope,
    WebhookEvent,
    WebhookRegistration,
    WebhookTestResult,
    utc_now,
)
from cms_webhooks.webhooks.payload import build_envelope, serialize_envelope
from cms_webhooks.webhooks.signing import sign_payload

logger = get_logger(__name__)

TEST_ENTITY_ID = "test-123"
TEST_ENTITY_NAME = "Test Webhook Delivery"


class WebhookDispatcher:
    """Deliver CMS events to every matching webhook.

    Each delivery gets a `pending` log entry before the request is sent,
    so a crash mid-request leaves a visible row. Delivery failures are
    recorded, never raised to the caller.
    """

    def __init__(
        self,
        store: WebhookStore,
        executor: DeliveryExecutor | None = None,
        config: DeliveryConfig | None = None,
        matcher: WebhookMatcher | None = None,
    ) -> None:
        """Initialize dispatcher.

        Args:
            store: Registration and delivery log persistence
            executor: HTTP executor (built from config when omitted)
            config: Delivery settings
            matcher: Subscription matcher (built from store when omitted)
        """
        self._store = store
        self._config = config or DeliveryConfig()
        self._executor = executor or DeliveryExecutor(self._config)
        self._matcher = matcher or WebhookMatcher(store)

    async def dispatch(
        self,
        event: WebhookEvent,
        entity_type: str,
        entity_id: str,
        entity_name: str | None = None,
        changes: dict[str, Any] | None = None,
        actor_id: str | None = None,
        actor_name: str | None = None,
        *,
        tenant_id: UUID | None = None,
    ) -> DispatchResult:
        """Send one event to all subscribed webhooks concurrently.

        The envelope and its serialized form are built once, so every
        subscriber receives an identical body; each webhook still gets
        its own signature.

        Args:
            event: Event type
            entity_type: Kind of content touched
            entity_id: Content item identifier
            entity_name: Optional display name
            changes: Optional map of changed fields
            actor_id: Optional ID of the user who made the change
            actor_name: Optional name of that user
            tenant_id: Restrict fan-out to one tenant's webhooks

        Returns:
            DispatchResult with success and failure counts
        """
        actor = (
            EnvelopeActor(id=actor_id, name=actor_name or "Unknown")
            if actor_id
            else None
        )
        envelope = build_envelope(
            event, entity_type, entity_id, entity_name, changes, actor
        )

        subscribers = await self._matcher.find_subscribers(event, entity_type, tenant_id)
        WEBHOOK_DISPATCH_FANOUT.labels(event=event.value).observe(len(subscribers))
        if not subscribers:
            logger.debug(
                "webhook_dispatch_no_subscribers",
                event_type=event.value,
                entity_type=entity_type,
            )
            return DispatchResult()

        payload = serialize_envelope(envelope)
        outcomes = await asyncio.gather(
            *(self._deliver_to(webhook, envelope, payload) for webhook in subscribers),
            return_exceptions=True,
        )

        result = DispatchResult()
        for webhook, outcome in zip(subscribers, outcomes, strict=True):
            if isinstance(outcome, Exception):
                # Store failure inside one delivery; siblings are unaffected
                logger.error(
                    "webhook_delivery_crashed",
                    webhook_id=str(webhook.id),
                    event_type=event.value,
                    error=str(outcome),
                    error_type=type(outcome).__name__,
                )
                result.failed += 1
            elif isinstance(outcome, BaseException):
                raise outcome
            elif outcome:
                result.dispatched += 1
            else:
                result.failed += 1

        logger.info(
            "webhook_event_dispatched",
            event_type=event.value,
            entity_type=entity_type,
            entity_id=entity_id,
            dispatched=result.dispatched,
            failed=result.failed,
        )
        return result

    async def _deliver_to(
        self,
        webhook: WebhookRegistration,
        envelope: EventEnvelope,
        payload: str,
    ) -> bool:
        signature = sign_payload(payload, webhook.secret)
        headers = build_request_headers(
            envelope.event,
            signature,
            envelope.timestamp,
            webhook.headers,
            self._config.user_agent,
        )

        entry = DeliveryLogEntry(
            webhook_id=webhook.id,
            tenant_id=webhook.tenant_id,
            event=envelope.event,
            entity_type=envelope.data.entity_type,
            entity_id=envelope.data.entity_id,
            entity_name=envelope.data.entity_name,
            request_url=webhook.url,
            request_headers=headers,
            request_body=payload,
        )
        await self._store.save_log(entry)

        logger.info(
            "webhook_delivery_attempt",
            webhook_id=str(webhook.id),
            log_id=str(entry.id),
            event_type=envelope.event.value,
            url=webhook.url,
        )
        return await self._attempt(entry, attempt=1, kind="dispatch")

    async def _attempt(self, entry: DeliveryLogEntry, *, attempt: int, kind: str) -> bool:
        """Send the logged request once and record the outcome on the same entry."""
        changes: dict[str, Any]
        try:
            result = await self._executor.deliver(
                entry.request_url,
                entry.request_headers,
                entry.request_body,
                self._config.dispatch_timeout_ms,
            )
        except DeliveryError as e:
            success = False
            changes = {
                "status": DeliveryStatus.FAILED,
                "response_status": None,
                "response_body": None,
                "duration_ms": e.duration_ms,
                "error": e.message,
            }
        else:
            success = result.ok
            changes = {
                "status": DeliveryStatus.SUCCESS if success else DeliveryStatus.FAILED,
                "response_status": result.status_code,
                "response_body": result.response_body,
                "duration_ms": result.duration_ms,
                "error": None if success else result.error_message,
            }

        changes["attempts"] = [
            *entry.attempts,
            DeliveryAttempt(
                attempt=attempt,
                status=changes["status"],
                response_status=changes["response_status"],
                duration_ms=changes["duration_ms"],
                error=changes["error"],
            ),
        ]
        await self._store.update_log(entry.id, changes)
        await self._store.record_delivery_outcome(
            entry.webhook_id, success=success, triggered_at=utc_now()
        )

        outcome = "success" if success else "failed"
        WEBHOOK_DELIVERIES.labels(event=entry.event.value, kind=kind, outcome=outcome).inc()
        WEBHOOK_DELIVERY_LATENCY.labels(event=entry.event.value).observe(
            changes["duration_ms"] / 1000
        )
        log = logger.info if success else logger.warning
        log(
            "webhook_delivered" if success else "webhook_delivery_failed",
            webhook_id=str(entry.webhook_id),
            log_id=str(entry.id),
            attempt=attempt,
            status_code=changes["response_status"],
            duration_ms=changes["duration_ms"],
            error=changes["error"],
        )
        return success

    async def retry(self, log_id: UUID) -> bool:
        """Replay a logged delivery exactly as originally signed.

        The entry is marked `retrying` and its retry count bumped before
        the request goes out. Replays reuse the stored URL, headers and
        body; nothing is re-signed.

        Returns:
            True if the retried attempt succeeded. False when the entry
            is missing, already succeeded or has used up its retries.

        Raises:
            ConcurrentUpdateError: If another retry claimed the entry first
        """
        entry = await self._store.get_log(log_id)
        if entry is None:
            logger.warning("webhook_retry_unknown_log", log_id=str(log_id))
            return False

        if entry.status == DeliveryStatus.SUCCESS:
            logger.info("webhook_retry_skipped_success", log_id=str(log_id))
            return False

        if entry.retry_count >= self._config.max_retries:
            logger.info(
                "webhook_retry_exhausted",
                log_id=str(log_id),
                retry_count=entry.retry_count,
            )
            WEBHOOK_RETRIES.labels(outcome="exhausted").inc()
            return False

        entry = await self._store.update_log(
            log_id,
            {
                "status": DeliveryStatus.RETRYING,
                "retry_count": entry.retry_count + 1,
            },
            expected_version=entry.version,
        )
        logger.info(
            "webhook_retry_started",
            log_id=str(log_id),
            webhook_id=str(entry.webhook_id),
            retry_count=entry.retry_count,
        )

        success = await self._attempt(entry, attempt=entry.retry_count + 1, kind="retry")
        WEBHOOK_RETRIES.labels(outcome="success" if success else "failed").inc()
        return success

    async def send_test(self, webhook_id: UUID) -> WebhookTestResult:
        """Send a synthetic, signed event to one webhook.

        Diagnostic only: writes no log entry and leaves counters untouched.
        Uses the shorter test timeout.

        Raises:
            WebhookNotFoundError: If the webhook doesn't exist
        """
        webhook = await self._store.get_webhook(webhook_id)
        if webhook is None:
            raise WebhookNotFoundError(f"Webhook {webhook_id} not found")

        event = webhook.events[0] if webhook.events else WebhookEvent.PAGE_UPDATED
        entity_type = webhook.entity_types[0] if webhook.entity_types else "page"
        envelope = build_envelope(
            event,
            entity_type,
            TEST_ENTITY_ID,
            TEST_ENTITY_NAME,
            changes={"test": True},
        )
        payload = serialize_envelope(envelope)
        headers = build_request_headers(
            event,
            sign_payload(payload, webhook.secret),
            envelope.timestamp,
            webhook.headers,
            self._config.user_agent,
        )

        try:
            result = await self._executor.deliver(
                webhook.url, headers, payload, self._config.test_timeout_ms
            )
        except DeliveryError as e:
            logger.info(
                "webhook_test_failed",
                webhook_id=str(webhook_id),
                error=e.message,
            )
            return WebhookTestResult(success=False, duration_ms=e.duration_ms, error=e.message)

        logger.info(
            "webhook_test_completed",
            webhook_id=str(webhook_id),
            status_code=result.status_code,
            duration_ms=result.duration_ms,
        )
        return WebhookTestResult(
            success=result.ok,
            status=result.status_code,
            duration_ms=result.duration_ms,
            error=None if result.ok else result.error_message,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._executor.close()
