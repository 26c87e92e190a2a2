"""Webhook registration, delivery log and envelope models."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any, Generic, TypeVar
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

T = TypeVar("T")


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class WebhookEvent(str, Enum):
    """Content-management events a webhook can subscribe to."""

    PAGE_CREATED = "page_created"
    PAGE_UPDATED = "page_updated"
    PAGE_PUBLISHED = "page_published"
    PAGE_UNPUBLISHED = "page_unpublished"
    PAGE_DELETED = "page_deleted"
    PAGE_SCHEDULED = "page_scheduled"
    DRAFT_SAVED = "draft_saved"
    VERSION_RESTORED = "version_restored"
    FAQ_CREATED = "faq_created"
    FAQ_UPDATED = "faq_updated"
    FAQ_DELETED = "faq_deleted"
    BLOG_PUBLISHED = "blog_published"
    BLOG_UNPUBLISHED = "blog_unpublished"
    CONTENT_APPROVED = "content_approved"
    CONTENT_REJECTED = "content_rejected"


class DeliveryStatus(str, Enum):
    """Delivery log entry states.

    pending -> success | failed -> retrying -> success | failed
    """

    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    RETRYING = "retrying"


class WebhookRegistration(BaseModel):
    """Tenant-owned webhook endpoint subscribed to CMS events."""

    id: UUID = Field(default_factory=uuid4)
    tenant_id: UUID

    name: str
    description: str | None = None

    # Delivery target
    url: str
    secret: str
    headers: dict[str, str] = Field(default_factory=dict)

    # Subscription filter
    events: list[WebhookEvent] = Field(default_factory=list)
    entity_types: list[str] = Field(default_factory=list)
    """Empty list matches every entity type."""

    # State
    is_active: bool = True
    success_count: int = 0
    failure_count: int = 0
    last_triggered_at: datetime | None = None

    created_by: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @model_validator(mode="after")
    def _active_requires_events(self) -> "WebhookRegistration":
        if self.is_active and not self.events:
            raise ValueError("An active webhook must subscribe to at least one event")
        return self


class DeliveryAttempt(BaseModel):
    """One HTTP request/response cycle recorded against a log entry."""

    model_config = ConfigDict(frozen=True)

    attempt: int
    status: DeliveryStatus
    response_status: int | None = None
    duration_ms: int | None = None
    error: str | None = None
    attempted_at: datetime = Field(default_factory=utc_now)


class DeliveryLogEntry(BaseModel):
    """Record of one delivery attempt chain for one webhook and one event.

    Retries mutate this entry in place. The request fields keep the
    original signed payload; `attempts` keeps the per-attempt history.
    """

    id: UUID = Field(default_factory=uuid4)
    webhook_id: UUID
    tenant_id: UUID

    event: WebhookEvent
    entity_type: str
    entity_id: str
    entity_name: str | None = None

    request_url: str
    request_headers: dict[str, str]
    request_body: str

    response_status: int | None = None
    response_body: str | None = None
    duration_ms: int | None = None
    error: str | None = None

    status: DeliveryStatus = DeliveryStatus.PENDING
    retry_count: int = 0
    attempts: list[DeliveryAttempt] = Field(default_factory=list)
    version: int = 0

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class DeliveryLogSummary(BaseModel):
    """Log entry without request/response bodies."""

    id: UUID
    webhook_id: UUID
    event: WebhookEvent
    entity_type: str
    entity_id: str
    entity_name: str | None
    status: DeliveryStatus
    response_status: int | None
    duration_ms: int | None
    error: str | None
    retry_count: int
    created_at: datetime

    @classmethod
    def from_entry(cls, entry: DeliveryLogEntry) -> "DeliveryLogSummary":
        return cls(
            id=entry.id,
            webhook_id=entry.webhook_id,
            event=entry.event,
            entity_type=entry.entity_type,
            entity_id=entry.entity_id,
            entity_name=entry.entity_name,
            status=entry.status,
            response_status=entry.response_status,
            duration_ms=entry.duration_ms,
            error=entry.error,
            retry_count=entry.retry_count,
            created_at=entry.created_at,
        )


class EnvelopeActor(BaseModel):
    """User who triggered the content change."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str


class EnvelopeData(BaseModel):
    """Entity descriptor carried in the envelope."""

    model_config = ConfigDict(frozen=True)

    entity_type: str = Field(min_length=1)
    entity_id: str = Field(min_length=1)
    entity_name: str | None = None
    action: str
    changes: dict[str, Any] | None = None
    actor: EnvelopeActor | None = None


class EventEnvelope(BaseModel):
    """Canonical event object sent as the webhook request body."""

    model_config = ConfigDict(frozen=True)

    event: WebhookEvent
    timestamp: str
    data: EnvelopeData

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON-ready body with camelCase keys in wire order.

        Optional fields are omitted when unset.
        """
        data: dict[str, Any] = {
            "entityType": self.data.entity_type,
            "entityId": self.data.entity_id,
        }
        if self.data.entity_name is not None:
            data["entityName"] = self.data.entity_name
        data["action"] = self.data.action
        if self.data.changes is not None:
            data["changes"] = self.data.changes
        if self.data.actor is not None:
            data["actor"] = {"id": self.data.actor.id, "name": self.data.actor.name}

        return {
            "event": self.event.value,
            "timestamp": self.timestamp,
            "data": data,
        }


class DeliveryResult(BaseModel):
    """Outcome of a single HTTP delivery that produced a response."""

    status_code: int
    status_text: str
    response_body: str | None
    duration_ms: int

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def error_message(self) -> str:
        return f"HTTP {self.status_code}: {self.status_text}"


class DispatchResult(BaseModel):
    """Aggregate outcome of one dispatched event."""

    dispatched: int = 0
    failed: int = 0


class WebhookTestResult(BaseModel):
    """Outcome of a diagnostic test delivery."""

    success: bool
    status: int | None = None
    duration_ms: int | None = None
    error: str | None = None


class WebhookStats(BaseModel):
    """Lifetime counters plus a recent per-status breakdown."""

    webhook_id: UUID
    success_count: int
    failure_count: int
    last_triggered_at: datetime | None
    recent_by_status: dict[DeliveryStatus, int]
    recent_logs: list[DeliveryLogSummary]


class OutboxStatus(str, Enum):
    """Outbox event processing states."""

    PENDING = "pending"
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"


class OutboxEvent(BaseModel):
    """Content event queued for asynchronous dispatch."""

    id: UUID = Field(default_factory=uuid4)
    tenant_id: UUID
    event: WebhookEvent
    entity_type: str
    entity_id: str
    entity_name: str | None = None
    changes: dict[str, Any] | None = None
    actor_id: str | None = None
    actor_name: str | None = None

    status: OutboxStatus = OutboxStatus.PENDING
    attempts: int = 0
    error: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    claimed_at: datetime | None = None
    processed_at: datetime | None = None


class ActorContext(BaseModel):
    """Caller identity handed to the service layer."""

    model_config = ConfigDict(frozen=True)

    tenant_id: UUID
    user_id: str | None = None
    roles: list[str] = Field(default_factory=list)


class ActionResult(BaseModel, Generic[T]):
    """Structured pass/fail result returned across the service boundary."""

    success: bool
    data: T | None = None
    error: str | None = None

    @classmethod
    def ok(cls, data: T | None = None) -> "ActionResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "ActionResult[T]":
        return cls(success=False, error=error)
