"""Outbound request header construction."""

from cms_webhooks.webhooks.models import WebhookEvent

CONTENT_TYPE_HEADER = "Content-Type"
EVENT_HEADER = "X-Webhook-Event"
SIGNATURE_HEADER = "X-Webhook-Signature"
TIMESTAMP_HEADER = "X-Webhook-Timestamp"

RESERVED_HEADERS: frozenset[str] = frozenset({
    CONTENT_TYPE_HEADER.lower(),
    EVENT_HEADER.lower(),
    SIGNATURE_HEADER.lower(),
    TIMESTAMP_HEADER.lower(),
})


def reserved_header_names(headers: dict[str, str]) -> list[str]:
    """Custom header names that collide (case-insensitively) with reserved ones."""
    return [name for name in headers if name.strip().lower() in RESERVED_HEADERS]


def build_request_headers(
    event: WebhookEvent,
    signature: str,
    timestamp: str,
    custom_headers: dict[str, str] | None = None,
    user_agent: str | None = None,
) -> dict[str, str]:
    """Merge custom headers with the fixed identity headers.

    Fixed headers are applied last and colliding custom names are dropped,
    so a registration can never override the signature or event headers.
    """
    headers: dict[str, str] = {}
    for name, value in (custom_headers or {}).items():
        if name.strip().lower() in RESERVED_HEADERS:
            continue
        headers[name] = value
    if user_agent and not any(name.lower() == "user-agent" for name in headers):
        headers["User-Agent"] = user_agent

    headers[CONTENT_TYPE_HEADER] = "application/json"
    headers[EVENT_HEADER] = event.value
    headers[SIGNATURE_HEADER] = signature
    headers[TIMESTAMP_HEADER] = timestamp
    return headers
