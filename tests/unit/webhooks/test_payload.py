"""Unit tests for envelope construction and serialization."""

import json
from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from cms_webhooks.webhooks.models import EnvelopeActor, WebhookEvent
from cms_webhooks.webhooks.payload import (
    build_envelope,
    event_action,
    format_timestamp,
    serialize_envelope,
)

FIXED_NOW = datetime(2024, 5, 1, 12, 30, 45, 123456, tzinfo=UTC)


class TestFormatTimestamp:
    """Tests for format_timestamp."""

    def test_millisecond_precision_with_z(self) -> None:
        assert format_timestamp(FIXED_NOW) == "2024-05-01T12:30:45.123Z"


class TestEventAction:
    """Tests for event_action."""

    @pytest.mark.parametrize(
        "event,action",
        [
            (WebhookEvent.PAGE_PUBLISHED, "page published"),
            (WebhookEvent.DRAFT_SAVED, "draft saved"),
            (WebhookEvent.VERSION_RESTORED, "version restored"),
        ],
    )
    def test_replaces_underscores(self, event: WebhookEvent, action: str) -> None:
        assert event_action(event) == action


class TestBuildEnvelope:
    """Tests for build_envelope."""

    def test_full_envelope(self) -> None:
        envelope = build_envelope(
            WebhookEvent.PAGE_PUBLISHED,
            "page",
            "p-1",
            "Home",
            changes={"title": "New"},
            actor=EnvelopeActor(id="u-1", name="Ada"),
            now=FIXED_NOW,
        )

        assert envelope.to_wire() == {
            "event": "page_published",
            "timestamp": "2024-05-01T12:30:45.123Z",
            "data": {
                "entityType": "page",
                "entityId": "p-1",
                "entityName": "Home",
                "action": "page published",
                "changes": {"title": "New"},
                "actor": {"id": "u-1", "name": "Ada"},
            },
        }

    def test_optional_fields_omitted(self) -> None:
        """Unset optionals are absent from the wire form, not null."""
        envelope = build_envelope(WebhookEvent.FAQ_DELETED, "faq", "f-1", now=FIXED_NOW)

        data = envelope.to_wire()["data"]

        assert data == {"entityType": "faq", "entityId": "f-1", "action": "faq deleted"}

    def test_empty_entity_id_rejected(self) -> None:
        with pytest.raises(ValidationError):
            build_envelope(WebhookEvent.PAGE_CREATED, "page", "")

    def test_empty_entity_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            build_envelope(WebhookEvent.PAGE_CREATED, "", "p-1")


class TestSerializeEnvelope:
    """Tests for serialize_envelope."""

    def test_compact_json_in_wire_order(self) -> None:
        envelope = build_envelope(WebhookEvent.PAGE_UPDATED, "page", "p-1", now=FIXED_NOW)

        body = serialize_envelope(envelope)

        assert body == (
            '{"event":"page_updated","timestamp":"2024-05-01T12:30:45.123Z",'
            '"data":{"entityType":"page","entityId":"p-1","action":"page updated"}}'
        )

    def test_non_ascii_kept_verbatim(self) -> None:
        envelope = build_envelope(
            WebhookEvent.PAGE_UPDATED, "page", "p-1", "Café", now=FIXED_NOW
        )
        assert '"entityName":"Café"' in serialize_envelope(envelope)

    def test_round_trips_as_json(self) -> None:
        envelope = build_envelope(
            WebhookEvent.BLOG_PUBLISHED, "blog", "b-1", changes={"tags": ["a"]}, now=FIXED_NOW
        )
        assert json.loads(serialize_envelope(envelope)) == envelope.to_wire()
