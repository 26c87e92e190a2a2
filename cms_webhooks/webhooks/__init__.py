"""Outbound webhooks for CMS content events.

This package signs, delivers and logs webhook requests for content
mutations, with HMAC-SHA256 signatures so receivers can verify origin.
Components with store dependencies are imported from their own modules.
"""

from cms_webhooks.webhooks.models import (
    ActionResult,
    ActorContext,
    DeliveryLogEntry,
    DeliveryStatus,
    DispatchResult,
    EventEnvelope,
    WebhookEvent,
    WebhookRegistration,
    WebhookStats,
    WebhookTestResult,
)
from cms_webhooks.webhooks.payload import build_envelope, serialize_envelope
from cms_webhooks.webhooks.signing import generate_secret, sign_payload, verify_signature

__all__ = [
    "ActionResult",
    "ActorContext",
    "DeliveryLogEntry",
    "DeliveryStatus",
    "DispatchResult",
    "EventEnvelope",
    "WebhookEvent",
    "WebhookRegistration",
    "WebhookStats",
    "WebhookTestResult",
    "build_envelope",
    "serialize_envelope",
    "generate_secret",
    "sign_payload",
    "verify_signature",
]
