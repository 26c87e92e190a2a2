"""Match CMS events to webhook registrations."""

from uuid import UUID

from cms_webhooks.stores.store import WebhookStore
from cms_webhooks.webhooks.models import WebhookEvent, WebhookRegistration


class WebhookMatcher:
    """Select active registrations subscribed to an event and entity type."""

    def __init__(self, store: WebhookStore) -> None:
        self._store = store

    def matches_entity_type(self, entity_type: str, entity_types: list[str]) -> bool:
        """Empty filter matches every entity type."""
        return not entity_types or entity_type in entity_types

    def matches_subscription(
        self,
        event: WebhookEvent,
        entity_type: str,
        webhook: WebhookRegistration,
    ) -> bool:
        """Check if an event should be sent to this webhook.

        All three must hold: the webhook is active, it subscribes to the
        event, and its entity-type filter admits the entity type.
        """
        if not webhook.is_active:
            return False

        if event not in webhook.events:
            return False

        return self.matches_entity_type(entity_type, webhook.entity_types)

    async def find_subscribers(
        self,
        event: WebhookEvent,
        entity_type: str,
        tenant_id: UUID | None = None,
    ) -> list[WebhookRegistration]:
        """Return matching registrations; empty list when nothing matches."""
        candidates = await self._store.list_webhooks(
            tenant_id, active_only=True, event=event
        )
        return [
            webhook for webhook in candidates
            if self.matches_subscription(event, entity_type, webhook)
        ]
