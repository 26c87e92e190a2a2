"""Event envelope construction and canonical serialization."""

import json
from datetime import datetime
from typing import Any

from cms_webhooks.webhooks.models import (
    EnvelopeActor,
    EnvelopeData,
    EventEnvelope,
    WebhookEvent,
    utc_now,
)


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def event_action(event: WebhookEvent) -> str:
    """Human-readable action: `page_published` -> `page published`."""
    return event.value.replace("_", " ")


def build_envelope(
    event: WebhookEvent,
    entity_type: str,
    entity_id: str,
    entity_name: str | None = None,
    changes: dict[str, Any] | None = None,
    actor: EnvelopeActor | None = None,
    *,
    now: datetime | None = None,
) -> EventEnvelope:
    """Assemble the envelope for one CMS event.

    Args:
        event: Event type
        entity_type: Kind of content touched (e.g. "page", "faq")
        entity_id: Identifier of the content item
        entity_name: Optional display name
        changes: Optional map of changed fields
        actor: Optional user who triggered the change
        now: Override for the envelope timestamp

    Returns:
        Frozen EventEnvelope
    """
    return EventEnvelope(
        event=event,
        timestamp=format_timestamp(now or utc_now()),
        data=EnvelopeData(
            entity_type=entity_type,
            entity_id=entity_id,
            entity_name=entity_name,
            action=event_action(event),
            changes=changes,
            actor=actor,
        ),
    )


def serialize_envelope(envelope: EventEnvelope) -> str:
    """Serialize to the compact JSON string that is both signed and sent."""
    return json.dumps(
        envelope.to_wire(),
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )
