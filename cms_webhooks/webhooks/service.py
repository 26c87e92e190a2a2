"""Webhook service: the action boundary for callers.

Every operation checks authorization first, then validates input, then
touches the store. Nothing is raised past this layer: failures come back
as `ActionResult(success=False, error=...)` with a human-readable reason,
and unexpected errors are logged here and reported generically.
"""

from uuid import UUID

from pydantic import AnyUrl, BaseModel, Field, TypeAdapter, ValidationError

from cms_webhooks.observability.logging import get_logger
from cms_webhooks.stores.store import WebhookStore
from cms_webhooks.webhooks.auth import Authorizer, Permission, RoleAuthorizer
from cms_webhooks.webhooks.dispatcher import WebhookDispatcher
from cms_webhooks.webhooks.exceptions import ConcurrentUpdateError
from cms_webhooks.webhooks.headers import reserved_header_names
from cms_webhooks.webhooks.logs import DeliveryLogs
from cms_webhooks.webhooks.models import (
    ActionResult,
    ActorContext,
    DeliveryLogEntry,
    DeliveryStatus,
    WebhookEvent,
    WebhookRegistration,
    WebhookStats,
    WebhookTestResult,
)
from cms_webhooks.webhooks.secret_manager import SecretManager

logger = get_logger(__name__)

UNAUTHORIZED = "Unauthorized"
WEBHOOK_NOT_FOUND = "Webhook not found"
LOG_NOT_FOUND = "Delivery log not found"
RETRY_IN_PROGRESS = "Delivery is already being retried"

_url_adapter: TypeAdapter[AnyUrl] = TypeAdapter(AnyUrl)
_valid_events = {e.value for e in WebhookEvent}

# Only description may be cleared with an explicit null
_NON_NULLABLE_UPDATE_FIELDS = ("name", "url", "events", "entity_types", "headers", "is_active")


class WebhookCreate(BaseModel):
    """Input for creating a webhook."""

    name: str
    url: str
    events: list[str]
    description: str | None = None
    entity_types: list[str] = Field(default_factory=list)
    headers: dict[str, str] = Field(default_factory=dict)


class WebhookUpdate(BaseModel):
    """Partial patch; unset fields are left unchanged.

    An explicit null clears `description`; other fields reject null.
    """

    name: str | None = None
    url: str | None = None
    events: list[str] | None = None
    description: str | None = None
    entity_types: list[str] | None = None
    headers: dict[str, str] | None = None
    is_active: bool | None = None


class LogQuery(BaseModel):
    """Filters for browsing the delivery log."""

    webhook_id: UUID | None = None
    status: DeliveryStatus | None = None
    event: WebhookEvent | None = None
    limit: int = Field(default=20, ge=1, le=100)
    offset: int = Field(default=0, ge=0)


class LogPage(BaseModel):
    """One page of delivery log entries plus the unpaginated total."""

    logs: list[DeliveryLogEntry]
    total: int


def validate_url(url: str) -> str | None:
    """Return an error message, or None if the URL is acceptable."""
    try:
        parsed = _url_adapter.validate_python(url.strip())
    except ValidationError:
        return "Invalid URL format"
    if parsed.scheme not in ("http", "https"):
        return "URL must use HTTP or HTTPS"
    return None


def validate_events(events: list[str]) -> str | None:
    """Return an error message, or None if the event set is acceptable."""
    if not events:
        return "At least one event must be selected"
    invalid = [e for e in events if e not in _valid_events]
    if invalid:
        return f"Invalid events: {', '.join(invalid)}"
    return None


def validate_headers(headers: dict[str, str]) -> str | None:
    """Reject custom headers that would shadow the reserved ones or cannot be sent."""
    reserved = reserved_header_names(headers)
    if reserved:
        return f"Header {reserved[0]} is reserved"
    if any(not name.strip() for name in headers):
        return "Header names must not be empty"
    for name, value in headers.items():
        if not _is_header_text(name) or any(c.isspace() for c in name):
            return f"Header {name} has an invalid name"
        if not _is_header_text(value):
            return f"Header {name} has an invalid value"
    return None


def _is_header_text(text: str) -> bool:
    """Printable ASCII only, as HTTP/1.1 requires."""
    return all(c == "\t" or " " <= c <= "~" for c in text)


def _dedupe(values: list[str]) -> list[str]:
    return list(dict.fromkeys(values))


class WebhookService:
    """Tenant-scoped webhook management, delivery and log access."""

    def __init__(
        self,
        store: WebhookStore,
        dispatcher: WebhookDispatcher,
        logs: DeliveryLogs | None = None,
        secrets: SecretManager | None = None,
        authorizer: Authorizer | None = None,
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._logs = logs or DeliveryLogs(store)
        self._secrets = secrets or SecretManager(store)
        self._authorizer = authorizer or RoleAuthorizer()

    async def _allowed(self, actor: ActorContext, permission: Permission) -> bool:
        allowed = await self._authorizer.is_authorized(actor, permission)
        if not allowed:
            logger.warning(
                "webhook_action_unauthorized",
                tenant_id=str(actor.tenant_id),
                user_id=actor.user_id,
                permission=permission.value,
            )
        return allowed

    async def _owned_webhook(
        self, actor: ActorContext, webhook_id: UUID
    ) -> WebhookRegistration | None:
        webhook = await self._store.get_webhook(webhook_id)
        if webhook is None or webhook.tenant_id != actor.tenant_id:
            return None
        return webhook

    async def _owned_log(self, actor: ActorContext, log_id: UUID) -> DeliveryLogEntry | None:
        entry = await self._store.get_log(log_id)
        if entry is None or entry.tenant_id != actor.tenant_id:
            return None
        return entry

    # Registrations
    async def list_webhooks(self, actor: ActorContext) -> ActionResult[list[WebhookRegistration]]:
        if not await self._allowed(actor, Permission.READ):
            return ActionResult.fail(UNAUTHORIZED)

        try:
            webhooks = await self._store.list_webhooks(actor.tenant_id)
        except Exception as e:
            logger.error("list_webhooks_failed", tenant_id=str(actor.tenant_id), error=str(e))
            return ActionResult.fail("Failed to fetch webhooks")

        return ActionResult.ok(webhooks)

    async def get_webhook(
        self, actor: ActorContext, webhook_id: UUID
    ) -> ActionResult[WebhookRegistration]:
        if not await self._allowed(actor, Permission.READ):
            return ActionResult.fail(UNAUTHORIZED)

        try:
            webhook = await self._owned_webhook(actor, webhook_id)
        except Exception as e:
            logger.error("get_webhook_failed", webhook_id=str(webhook_id), error=str(e))
            return ActionResult.fail("Failed to fetch webhook")

        if webhook is None:
            return ActionResult.fail(WEBHOOK_NOT_FOUND)
        return ActionResult.ok(webhook)

    async def create_webhook(
        self, actor: ActorContext, request: WebhookCreate
    ) -> ActionResult[WebhookRegistration]:
        """Create a webhook with a server-generated secret.

        The returned registration includes the secret so it can be shown
        to the user once.
        """
        if not await self._allowed(actor, Permission.MANAGE):
            return ActionResult.fail(UNAUTHORIZED)

        if not request.name.strip():
            return ActionResult.fail("Name is required")
        error = (
            validate_url(request.url)
            or validate_events(request.events)
            or validate_headers(request.headers)
        )
        if error:
            return ActionResult.fail(error)

        try:
            webhook = WebhookRegistration(
                tenant_id=actor.tenant_id,
                name=request.name.strip(),
                description=request.description,
                url=request.url.strip(),
                secret=self._secrets.generate(),
                headers=request.headers,
                events=[WebhookEvent(e) for e in _dedupe(request.events)],
                entity_types=_dedupe(request.entity_types),
                created_by=actor.user_id,
            )
            await self._store.save_webhook(webhook)
        except Exception as e:
            logger.error("create_webhook_failed", tenant_id=str(actor.tenant_id), error=str(e))
            return ActionResult.fail("Failed to create webhook")

        logger.info(
            "webhook_created",
            tenant_id=str(actor.tenant_id),
            webhook_id=str(webhook.id),
            events=[e.value for e in webhook.events],
        )
        return ActionResult.ok(webhook)

    async def update_webhook(
        self, actor: ActorContext, webhook_id: UUID, request: WebhookUpdate
    ) -> ActionResult[WebhookRegistration]:
        if not await self._allowed(actor, Permission.MANAGE):
            return ActionResult.fail(UNAUTHORIZED)

        changes = request.model_dump(exclude_unset=True)
        cleared = [f for f in _NON_NULLABLE_UPDATE_FIELDS if f in changes and changes[f] is None]
        if cleared:
            return ActionResult.fail(f"Field {cleared[0]} cannot be null")
        if "name" in changes:
            if not changes["name"].strip():
                return ActionResult.fail("Name is required")
            changes["name"] = changes["name"].strip()
        if "url" in changes:
            error = validate_url(changes["url"])
            if error:
                return ActionResult.fail(error)
            changes["url"] = changes["url"].strip()
        if "events" in changes:
            error = validate_events(changes["events"])
            if error:
                return ActionResult.fail(error)
            changes["events"] = [WebhookEvent(e) for e in _dedupe(changes["events"])]
        if "headers" in changes:
            error = validate_headers(changes["headers"])
            if error:
                return ActionResult.fail(error)
        if "entity_types" in changes:
            changes["entity_types"] = _dedupe(changes["entity_types"])

        try:
            webhook = await self._owned_webhook(actor, webhook_id)
            if webhook is None:
                return ActionResult.fail(WEBHOOK_NOT_FOUND)
            updated = await self._store.update_webhook(webhook_id, changes)
        except Exception as e:
            logger.error("update_webhook_failed", webhook_id=str(webhook_id), error=str(e))
            return ActionResult.fail("Failed to update webhook")

        if updated is None:
            return ActionResult.fail(WEBHOOK_NOT_FOUND)

        logger.info(
            "webhook_updated",
            tenant_id=str(actor.tenant_id),
            webhook_id=str(webhook_id),
            fields=sorted(changes),
        )
        return ActionResult.ok(updated)

    async def delete_webhook(self, actor: ActorContext, webhook_id: UUID) -> ActionResult[None]:
        """Delete the registration. Its delivery log entries are kept."""
        if not await self._allowed(actor, Permission.MANAGE):
            return ActionResult.fail(UNAUTHORIZED)

        try:
            webhook = await self._owned_webhook(actor, webhook_id)
            if webhook is None:
                return ActionResult.fail(WEBHOOK_NOT_FOUND)
            await self._store.delete_webhook(webhook_id)
        except Exception as e:
            logger.error("delete_webhook_failed", webhook_id=str(webhook_id), error=str(e))
            return ActionResult.fail("Failed to delete webhook")

        logger.info("webhook_deleted", tenant_id=str(actor.tenant_id), webhook_id=str(webhook_id))
        return ActionResult.ok()

    async def toggle_webhook_active(
        self, actor: ActorContext, webhook_id: UUID
    ) -> ActionResult[bool]:
        """Flip is_active and return the new state."""
        if not await self._allowed(actor, Permission.MANAGE):
            return ActionResult.fail(UNAUTHORIZED)

        try:
            webhook = await self._owned_webhook(actor, webhook_id)
            if webhook is None:
                return ActionResult.fail(WEBHOOK_NOT_FOUND)
            if not webhook.is_active and not webhook.events:
                return ActionResult.fail("At least one event must be selected")
            updated = await self._store.update_webhook(
                webhook_id, {"is_active": not webhook.is_active}
            )
        except Exception as e:
            logger.error("toggle_webhook_failed", webhook_id=str(webhook_id), error=str(e))
            return ActionResult.fail("Failed to update webhook")

        if updated is None:
            return ActionResult.fail(WEBHOOK_NOT_FOUND)
        return ActionResult.ok(updated.is_active)

    async def regenerate_secret(self, actor: ActorContext, webhook_id: UUID) -> ActionResult[str]:
        if not await self._allowed(actor, Permission.MANAGE):
            return ActionResult.fail(UNAUTHORIZED)

        try:
            webhook = await self._owned_webhook(actor, webhook_id)
            if webhook is None:
                return ActionResult.fail(WEBHOOK_NOT_FOUND)
            new_secret = await self._secrets.regenerate(webhook_id)
        except Exception as e:
            logger.error("regenerate_secret_failed", webhook_id=str(webhook_id), error=str(e))
            return ActionResult.fail("Failed to regenerate webhook secret")

        return ActionResult.ok(new_secret)

    # Delivery
    async def test_webhook(
        self, actor: ActorContext, webhook_id: UUID
    ) -> ActionResult[WebhookTestResult]:
        """Send a test event. Delivery failures are data, not errors."""
        if not await self._allowed(actor, Permission.DELIVER):
            return ActionResult.fail(UNAUTHORIZED)

        try:
            webhook = await self._owned_webhook(actor, webhook_id)
            if webhook is None:
                return ActionResult.fail(WEBHOOK_NOT_FOUND)
            result = await self._dispatcher.send_test(webhook_id)
        except Exception as e:
            logger.error("test_webhook_failed", webhook_id=str(webhook_id), error=str(e))
            return ActionResult.fail("Failed to test webhook")

        return ActionResult.ok(result)

    async def retry_delivery(self, actor: ActorContext, log_id: UUID) -> ActionResult[bool]:
        """Retry a logged delivery; data is True if the retry succeeded."""
        if not await self._allowed(actor, Permission.DELIVER):
            return ActionResult.fail(UNAUTHORIZED)

        try:
            entry = await self._owned_log(actor, log_id)
            if entry is None:
                return ActionResult.fail(LOG_NOT_FOUND)
            if entry.status == DeliveryStatus.SUCCESS:
                return ActionResult.fail("Delivery already succeeded")
            delivered = await self._dispatcher.retry(log_id)
        except ConcurrentUpdateError:
            return ActionResult.fail(RETRY_IN_PROGRESS)
        except Exception as e:
            logger.error("retry_delivery_failed", log_id=str(log_id), error=str(e))
            return ActionResult.fail("Failed to retry webhook delivery")

        return ActionResult.ok(delivered)

    # Delivery log
    async def get_logs(self, actor: ActorContext, query: LogQuery) -> ActionResult[LogPage]:
        if not await self._allowed(actor, Permission.READ):
            return ActionResult.fail(UNAUTHORIZED)

        filters = {
            "tenant_id": actor.tenant_id,
            "webhook_id": query.webhook_id,
            "status": query.status,
            "event": query.event,
        }
        try:
            logs = await self._store.list_logs(**filters, limit=query.limit, offset=query.offset)
            total = await self._store.count_logs(**filters)
        except Exception as e:
            logger.error("get_logs_failed", tenant_id=str(actor.tenant_id), error=str(e))
            return ActionResult.fail("Failed to fetch webhook logs")

        return ActionResult.ok(LogPage(logs=logs, total=total))

    async def get_log(self, actor: ActorContext, log_id: UUID) -> ActionResult[DeliveryLogEntry]:
        if not await self._allowed(actor, Permission.READ):
            return ActionResult.fail(UNAUTHORIZED)

        try:
            entry = await self._owned_log(actor, log_id)
        except Exception as e:
            logger.error("get_log_failed", log_id=str(log_id), error=str(e))
            return ActionResult.fail("Failed to fetch webhook log")

        if entry is None:
            return ActionResult.fail(LOG_NOT_FOUND)
        return ActionResult.ok(entry)

    async def get_stats(self, actor: ActorContext, webhook_id: UUID) -> ActionResult[WebhookStats]:
        if not await self._allowed(actor, Permission.READ):
            return ActionResult.fail(UNAUTHORIZED)

        try:
            webhook = await self._owned_webhook(actor, webhook_id)
            if webhook is None:
                return ActionResult.fail(WEBHOOK_NOT_FOUND)
            stats = await self._logs.stats(webhook_id)
        except Exception as e:
            logger.error("get_stats_failed", webhook_id=str(webhook_id), error=str(e))
            return ActionResult.fail("Failed to fetch webhook stats")

        return ActionResult.ok(stats)

    async def cleanup_logs(self, actor: ActorContext) -> ActionResult[int]:
        """Purge expired log entries across all tenants."""
        if not await self._allowed(actor, Permission.MANAGE):
            return ActionResult.fail(UNAUTHORIZED)

        try:
            deleted = await self._logs.cleanup()
        except Exception as e:
            logger.error("cleanup_logs_failed", error=str(e))
            return ActionResult.fail("Failed to clean up webhook logs")

        return ActionResult.ok(deleted)
