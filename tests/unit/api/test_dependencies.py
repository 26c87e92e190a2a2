"""Unit tests for API dependency wiring."""

from collections.abc import AsyncGenerator
from datetime import timedelta
from uuid import uuid4

import pytest
from fastapi import HTTPException

from cms_webhooks.api import dependencies
from cms_webhooks.config.models.jobs import JobsConfig
from cms_webhooks.config.settings import Settings


@pytest.fixture(autouse=True)
async def reset() -> AsyncGenerator[None, None]:
    await dependencies.reset_dependencies()
    yield
    await dependencies.reset_dependencies()


class TestGetOutbox:
    """Tests for the shared outbox."""

    async def test_lease_from_settings(self) -> None:
        settings = Settings(jobs=JobsConfig(outbox_lease_seconds=45))
        store = dependencies.get_store()
        dispatcher = dependencies.get_dispatcher(settings, store)

        outbox = dependencies.get_outbox(settings, store, dispatcher)

        assert outbox._lease == timedelta(seconds=45)
        assert dependencies.get_outbox(settings, store, dispatcher) is outbox


class TestGetActor:
    """Tests for gateway identity headers."""

    async def test_parses_headers(self) -> None:
        tenant_id = uuid4()

        actor = await dependencies.get_actor(str(tenant_id), "u-1", "admin, editor,")

        assert actor.tenant_id == tenant_id
        assert actor.user_id == "u-1"
        assert actor.roles == ["admin", "editor"]

    @pytest.mark.parametrize("tenant", [None, "", "not-a-uuid"])
    async def test_bad_tenant_is_401(self, tenant) -> None:
        with pytest.raises(HTTPException) as exc_info:
            await dependencies.get_actor(tenant, "u-1", "admin")

        assert exc_info.value.status_code == 401
