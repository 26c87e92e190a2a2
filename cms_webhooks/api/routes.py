"""Webhook management API routes."""

from datetime import datetime
from typing import TypeVar
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, Field

from cms_webhooks.api.dependencies import ActorDep, ServiceDep
from cms_webhooks.observability.logging import get_logger
from cms_webhooks.webhooks.models import (
    ActionResult,
    DeliveryLogEntry,
    DeliveryStatus,
    WebhookEvent,
    WebhookRegistration,
    WebhookStats,
    WebhookTestResult,
)
from cms_webhooks.webhooks.service import (
    LOG_NOT_FOUND,
    RETRY_IN_PROGRESS,
    UNAUTHORIZED,
    WEBHOOK_NOT_FOUND,
    LogPage,
    LogQuery,
    WebhookCreate,
    WebhookUpdate,
)

logger = get_logger(__name__)

router = APIRouter(tags=["webhooks"])

T = TypeVar("T")

_ERROR_STATUS = {
    UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    WEBHOOK_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    LOG_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    RETRY_IN_PROGRESS: status.HTTP_409_CONFLICT,
}


def _unwrap(result: ActionResult[T]) -> T:
    """Return the result data or raise the matching HTTP error."""
    if result.success:
        return result.data  # type: ignore[return-value]

    error = result.error or "Request failed"
    if error in _ERROR_STATUS:
        status_code = _ERROR_STATUS[error]
    elif error.startswith("Failed to"):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    else:
        status_code = status.HTTP_400_BAD_REQUEST
    raise HTTPException(status_code=status_code, detail=error)


# Response models
class WebhookResponse(BaseModel):
    """Webhook registration without its secret."""

    id: UUID
    name: str
    description: str | None
    url: str
    headers: dict[str, str]
    events: list[WebhookEvent]
    entity_types: list[str]
    is_active: bool
    success_count: int
    failure_count: int
    last_triggered_at: datetime | None
    created_by: str | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_registration(cls, webhook: WebhookRegistration) -> "WebhookResponse":
        """Convert WebhookRegistration to response model."""
        return cls.model_validate(webhook.model_dump(exclude={"secret", "tenant_id"}))


class WebhookSecretResponse(WebhookResponse):
    """Response after creating a webhook (includes secret once)."""

    secret: str = Field(description="Signing secret (only shown on creation)")


class SecretResponse(BaseModel):
    """Newly generated signing secret."""

    secret: str


class ToggleResponse(BaseModel):
    """Activation state after a toggle."""

    is_active: bool


class RetryResponse(BaseModel):
    """Outcome of a manual retry."""

    success: bool


class CleanupResponse(BaseModel):
    """Number of delivery log entries purged."""

    deleted: int


# Registrations
@router.get("", response_model=list[WebhookResponse])
async def list_webhooks(actor: ActorDep, service: ServiceDep) -> list[WebhookResponse]:
    """List the tenant's webhooks, newest first."""
    webhooks = _unwrap(await service.list_webhooks(actor))
    return [WebhookResponse.from_registration(w) for w in webhooks]


@router.post("", response_model=WebhookSecretResponse, status_code=201)
async def create_webhook(
    request: WebhookCreate,
    actor: ActorDep,
    service: ServiceDep,
) -> WebhookSecretResponse:
    """Create a webhook.

    Args:
        request: Webhook fields; the secret is generated server-side
        actor: Caller identity
        service: Webhook service

    Returns:
        Created webhook (with secret)
    """
    webhook = _unwrap(await service.create_webhook(actor, request))
    response = WebhookResponse.from_registration(webhook)
    return WebhookSecretResponse(**response.model_dump(), secret=webhook.secret)


# Cleanup is registered before the parameterized paths
@router.post("/logs/cleanup", response_model=CleanupResponse)
async def cleanup_logs(actor: ActorDep, service: ServiceDep) -> CleanupResponse:
    """Purge delivery log entries older than the retention window."""
    return CleanupResponse(deleted=_unwrap(await service.cleanup_logs(actor)))


@router.get("/logs", response_model=LogPage)
async def get_logs(
    actor: ActorDep,
    service: ServiceDep,
    webhook_id: UUID | None = Query(default=None),
    status_filter: DeliveryStatus | None = Query(default=None, alias="status"),
    event: WebhookEvent | None = Query(default=None),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> LogPage:
    """Browse delivery log entries, newest first."""
    query = LogQuery(
        webhook_id=webhook_id,
        status=status_filter,
        event=event,
        limit=limit,
        offset=offset,
    )
    return _unwrap(await service.get_logs(actor, query))


@router.get("/logs/{log_id}", response_model=DeliveryLogEntry)
async def get_log(log_id: UUID, actor: ActorDep, service: ServiceDep) -> DeliveryLogEntry:
    """Get one delivery log entry with full request and response."""
    return _unwrap(await service.get_log(actor, log_id))


@router.post("/logs/{log_id}/retry", response_model=RetryResponse)
async def retry_delivery(log_id: UUID, actor: ActorDep, service: ServiceDep) -> RetryResponse:
    """Replay a failed delivery."""
    delivered = _unwrap(await service.retry_delivery(actor, log_id))
    logger.info("retry_delivery_request", log_id=str(log_id), success=delivered)
    return RetryResponse(success=delivered)


@router.get("/{webhook_id}", response_model=WebhookResponse)
async def get_webhook(webhook_id: UUID, actor: ActorDep, service: ServiceDep) -> WebhookResponse:
    webhook = _unwrap(await service.get_webhook(actor, webhook_id))
    return WebhookResponse.from_registration(webhook)


@router.patch("/{webhook_id}", response_model=WebhookResponse)
async def update_webhook(
    webhook_id: UUID,
    request: WebhookUpdate,
    actor: ActorDep,
    service: ServiceDep,
) -> WebhookResponse:
    """Update a webhook. Only the fields present in the body change."""
    webhook = _unwrap(await service.update_webhook(actor, webhook_id, request))
    return WebhookResponse.from_registration(webhook)


@router.delete("/{webhook_id}", status_code=204)
async def delete_webhook(webhook_id: UUID, actor: ActorDep, service: ServiceDep) -> None:
    """Delete a webhook. Its delivery log entries are kept."""
    _unwrap(await service.delete_webhook(actor, webhook_id))


@router.post("/{webhook_id}/toggle", response_model=ToggleResponse)
async def toggle_webhook_active(
    webhook_id: UUID, actor: ActorDep, service: ServiceDep
) -> ToggleResponse:
    return ToggleResponse(is_active=_unwrap(await service.toggle_webhook_active(actor, webhook_id)))


@router.post("/{webhook_id}/secret", response_model=SecretResponse)
async def regenerate_secret(
    webhook_id: UUID, actor: ActorDep, service: ServiceDep
) -> SecretResponse:
    """Rotate the signing secret and return the new value once."""
    return SecretResponse(secret=_unwrap(await service.regenerate_secret(actor, webhook_id)))


@router.post("/{webhook_id}/test", response_model=WebhookTestResult)
async def test_webhook(
    webhook_id: UUID, actor: ActorDep, service: ServiceDep
) -> WebhookTestResult:
    """Send a signed test event. The outcome is returned, not logged."""
    return _unwrap(await service.test_webhook(actor, webhook_id))


@router.get("/{webhook_id}/stats", response_model=WebhookStats)
async def get_stats(webhook_id: UUID, actor: ActorDep, service: ServiceDep) -> WebhookStats:
    return _unwrap(await service.get_stats(actor, webhook_id))
