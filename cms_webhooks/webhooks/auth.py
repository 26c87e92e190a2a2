"""Authorization checks for webhook operations."""

from abc import ABC, abstractmethod
from enum import Enum

from cms_webhooks.webhooks.models import ActorContext


class Permission(str, Enum):
    """Operations gated by the authorizer."""

    READ = "webhooks:read"  # list/get webhooks, logs and stats
    MANAGE = "webhooks:manage"  # create/update/delete, secrets, cleanup
    DELIVER = "webhooks:deliver"  # test and retry deliveries


class Authorizer(ABC):
    """Boolean permission check. Denials are results, not exceptions."""

    @abstractmethod
    async def is_authorized(self, actor: ActorContext, permission: Permission) -> bool:
        """Return True if the actor may perform the operation."""
        pass


DEFAULT_ROLE_PERMISSIONS: dict[str, frozenset[Permission]] = {
    "owner": frozenset(Permission),
    "admin": frozenset(Permission),
    "editor": frozenset({Permission.READ, Permission.DELIVER}),
    "viewer": frozenset({Permission.READ}),
}


class RoleAuthorizer(Authorizer):
    """Grant permissions from the actor's roles."""

    def __init__(
        self, role_permissions: dict[str, frozenset[Permission]] | None = None
    ) -> None:
        self._role_permissions = role_permissions or DEFAULT_ROLE_PERMISSIONS

    async def is_authorized(self, actor: ActorContext, permission: Permission) -> bool:
        return any(
            permission in self._role_permissions.get(role.lower(), frozenset())
            for role in actor.roles
        )
