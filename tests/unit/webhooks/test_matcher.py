"""Unit tests for WebhookMatcher."""

from uuid import uuid4

import pytest

from cms_webhooks.webhooks.matcher import WebhookMatcher
from cms_webhooks.webhooks.models import WebhookEvent, WebhookRegistration


@pytest.fixture
def matcher(store) -> WebhookMatcher:
    return WebhookMatcher(store)


def _webhook(**overrides) -> WebhookRegistration:
    fields = {
        "tenant_id": uuid4(),
        "name": "hook",
        "url": "https://example.com/hook",
        "secret": "whsec_x",
        "events": [WebhookEvent.PAGE_PUBLISHED],
    }
    fields.update(overrides)
    return WebhookRegistration(**fields)


class TestMatchesSubscription:
    """Tests for the subscription predicate."""

    def test_matches_event_with_empty_entity_filter(self, matcher: WebhookMatcher) -> None:
        """Empty entity filter matches every entity type."""
        webhook = _webhook()
        assert matcher.matches_subscription(WebhookEvent.PAGE_PUBLISHED, "page", webhook)
        assert matcher.matches_subscription(WebhookEvent.PAGE_PUBLISHED, "faq", webhook)

    def test_rejects_unsubscribed_event(self, matcher: WebhookMatcher) -> None:
        webhook = _webhook()
        assert not matcher.matches_subscription(WebhookEvent.PAGE_DELETED, "page", webhook)

    def test_entity_filter(self, matcher: WebhookMatcher) -> None:
        webhook = _webhook(entity_types=["page"])
        assert matcher.matches_subscription(WebhookEvent.PAGE_PUBLISHED, "page", webhook)
        assert not matcher.matches_subscription(WebhookEvent.PAGE_PUBLISHED, "faq", webhook)

    def test_inactive_never_matches(self, matcher: WebhookMatcher) -> None:
        webhook = _webhook(is_active=False)
        assert not matcher.matches_subscription(WebhookEvent.PAGE_PUBLISHED, "page", webhook)


class TestFindSubscribers:
    """Tests for find_subscribers against the store."""

    async def test_returns_only_matching(self, matcher: WebhookMatcher, make_webhook) -> None:
        match = await make_webhook(entity_types=["page"])
        await make_webhook(entity_types=["faq"])
        await make_webhook(events=[WebhookEvent.PAGE_DELETED])
        await make_webhook(is_active=False)

        found = await matcher.find_subscribers(WebhookEvent.PAGE_PUBLISHED, "page")

        assert [w.id for w in found] == [match.id]

    async def test_no_subscribers(self, matcher: WebhookMatcher) -> None:
        assert await matcher.find_subscribers(WebhookEvent.FAQ_CREATED, "faq") == []

    async def test_tenant_scoping(self, matcher: WebhookMatcher, make_webhook) -> None:
        ours = await make_webhook()
        await make_webhook(tenant_id=uuid4())

        found = await matcher.find_subscribers(
            WebhookEvent.PAGE_PUBLISHED, "page", tenant_id=ours.tenant_id
        )

        assert [w.id for w in found] == [ours.id]
