"""Webhook signing secret lifecycle."""

from uuid import UUID

from cms_webhooks.config.models.delivery import SecretConfig
from cms_webhooks.observability.logging import get_logger
from cms_webhooks.stores.store import WebhookStore
from cms_webhooks.webhooks.exceptions import WebhookNotFoundError
from cms_webhooks.webhooks.signing import generate_secret

logger = get_logger(__name__)


class SecretManager:
    """Generate and rotate webhook secrets.

    Rotation does not notify the receiving endpoint and does not touch
    logged requests, which keep the signature they were sent with.
    """

    def __init__(self, store: WebhookStore, config: SecretConfig | None = None) -> None:
        self._store = store
        self._config = config or SecretConfig()

    def generate(self) -> str:
        return generate_secret(self._config.prefix, self._config.random_bytes)

    async def regenerate(self, webhook_id: UUID) -> str:
        """Replace a webhook's secret and return the new value.

        Raises:
            WebhookNotFoundError: If the webhook doesn't exist
        """
        new_secret = self.generate()
        updated = await self._store.update_webhook(webhook_id, {"secret": new_secret})
        if updated is None:
            raise WebhookNotFoundError(f"Webhook {webhook_id} not found")

        logger.info("webhook_secret_rotated", webhook_id=str(webhook_id))
        return new_secret
