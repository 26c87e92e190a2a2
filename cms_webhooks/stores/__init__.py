"""Webhook stores for registrations, delivery logs and the outbox."""

from cms_webhooks.stores.inmemory import InMemoryWebhookStore
from cms_webhooks.stores.store import WebhookStore

__all__ = [
    "InMemoryWebhookStore",
    "WebhookStore",
]
