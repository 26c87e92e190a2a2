"""Unit tests for role-based authorization."""

from uuid import uuid4

import pytest

from cms_webhooks.webhooks.auth import Permission, RoleAuthorizer
from cms_webhooks.webhooks.models import ActorContext


def _actor(*roles: str) -> ActorContext:
    return ActorContext(tenant_id=uuid4(), user_id="u-1", roles=list(roles))


class TestRoleAuthorizer:
    """Tests for RoleAuthorizer."""

    @pytest.mark.parametrize("permission", list(Permission))
    async def test_admin_has_everything(self, permission: Permission) -> None:
        assert await RoleAuthorizer().is_authorized(_actor("admin"), permission)

    async def test_editor_cannot_manage(self) -> None:
        authorizer = RoleAuthorizer()
        actor = _actor("editor")
        assert await authorizer.is_authorized(actor, Permission.READ)
        assert await authorizer.is_authorized(actor, Permission.DELIVER)
        assert not await authorizer.is_authorized(actor, Permission.MANAGE)

    async def test_viewer_read_only(self) -> None:
        authorizer = RoleAuthorizer()
        assert await authorizer.is_authorized(_actor("viewer"), Permission.READ)
        assert not await authorizer.is_authorized(_actor("viewer"), Permission.DELIVER)

    async def test_no_roles_denied(self) -> None:
        assert not await RoleAuthorizer().is_authorized(_actor(), Permission.READ)

    async def test_roles_case_insensitive(self) -> None:
        assert await RoleAuthorizer().is_authorized(_actor("Admin"), Permission.MANAGE)

    async def test_custom_mapping(self) -> None:
        authorizer = RoleAuthorizer({"integrations": frozenset({Permission.MANAGE})})
        assert await authorizer.is_authorized(_actor("integrations"), Permission.MANAGE)
        assert not await authorizer.is_authorized(_actor("admin"), Permission.MANAGE)
