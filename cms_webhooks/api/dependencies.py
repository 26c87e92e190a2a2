"""Dependency injection for API routes.

Components are created once per process from settings and can be
overridden for testing via `app.dependency_overrides`.
"""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status

from cms_webhooks.config import get_settings
from cms_webhooks.config.settings import Settings
from cms_webhooks.observability.logging import get_logger
from cms_webhooks.stores import InMemoryWebhookStore, WebhookStore
from cms_webhooks.webhooks.dispatcher import WebhookDispatcher
from cms_webhooks.webhooks.executor import DeliveryExecutor
from cms_webhooks.webhooks.logs import DeliveryLogs
from cms_webhooks.webhooks.models import ActorContext
from cms_webhooks.webhooks.outbox import WebhookOutbox
from cms_webhooks.webhooks.secret_manager import SecretManager
from cms_webhooks.webhooks.service import WebhookService

logger = get_logger(__name__)

_store: WebhookStore | None = None
_dispatcher: WebhookDispatcher | None = None
_service: WebhookService | None = None
_outbox: WebhookOutbox | None = None


def get_store() -> WebhookStore:
    """Get the shared webhook store."""
    global _store
    if _store is None:
        _store = InMemoryWebhookStore()
        logger.info("webhook_store_created", backend="inmemory")
    return _store


def get_dispatcher(
    settings: Annotated[Settings, Depends(get_settings)],
    store: Annotated[WebhookStore, Depends(get_store)],
) -> WebhookDispatcher:
    """Get the shared dispatcher, which owns the HTTP client."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = WebhookDispatcher(
            store,
            executor=DeliveryExecutor(settings.delivery),
            config=settings.delivery,
        )
    return _dispatcher


def get_outbox(
    settings: Annotated[Settings, Depends(get_settings)],
    store: Annotated[WebhookStore, Depends(get_store)],
    dispatcher: Annotated[WebhookDispatcher, Depends(get_dispatcher)],
) -> WebhookOutbox:
    """Get the shared outbox that content mutations enqueue into."""
    global _outbox
    if _outbox is None:
        _outbox = WebhookOutbox(
            store,
            dispatcher,
            lease_seconds=settings.jobs.outbox_lease_seconds,
        )
    return _outbox


def get_service(
    settings: Annotated[Settings, Depends(get_settings)],
    store: Annotated[WebhookStore, Depends(get_store)],
    dispatcher: Annotated[WebhookDispatcher, Depends(get_dispatcher)],
) -> WebhookService:
    """Get the webhook service."""
    global _service
    if _service is None:
        _service = WebhookService(
            store,
            dispatcher,
            logs=DeliveryLogs(store, settings.logs),
            secrets=SecretManager(store, settings.secrets),
        )
    return _service


async def get_actor(
    x_tenant_id: Annotated[str | None, Header()] = None,
    x_user_id: Annotated[str | None, Header()] = None,
    x_user_roles: Annotated[str | None, Header()] = None,
) -> ActorContext:
    """Build the caller identity from headers set by the gateway.

    Raises:
        HTTPException: 401 if the tenant header is missing or malformed
    """
    if not x_tenant_id:
        logger.warning("auth_missing_tenant_id")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing tenant context",
        )
    try:
        tenant_id = UUID(x_tenant_id)
    except ValueError:
        logger.warning("auth_invalid_tenant_id", tenant_id=x_tenant_id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid tenant context",
        ) from None

    roles = [r.strip() for r in (x_user_roles or "").split(",") if r.strip()]
    return ActorContext(tenant_id=tenant_id, user_id=x_user_id, roles=roles)


async def reset_dependencies() -> None:
    """Reset all shared components. Used by tests and on shutdown."""
    global _store, _dispatcher, _service, _outbox
    if _dispatcher is not None:
        await _dispatcher.close()
    _store = None
    _dispatcher = None
    _service = None
    _outbox = None


SettingsDep = Annotated[Settings, Depends(get_settings)]
ServiceDep = Annotated[WebhookService, Depends(get_service)]
OutboxDep = Annotated[WebhookOutbox, Depends(get_outbox)]
ActorDep = Annotated[ActorContext, Depends(get_actor)]
