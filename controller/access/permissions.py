"""Static action -> allowed roles table and the single authorize check."""

from typing import Dict, FrozenSet

from common.exceptions import UnauthorizedError
from common.logging_config import get_logger
from common.types import Action, Role
from controller.access.role_registry import RoleRegistry

logger = get_logger(__name__)

_READERS = frozenset({Role.VIEWER, Role.PUBLISHER, Role.ADMIN})
_ADMIN_ONLY = frozenset({Role.ADMIN})

ALLOWED_ROLES: Dict[Action, FrozenSet[Role]] = {
    Action.UPLOAD_FILE: frozenset({Role.PUBLISHER, Role.ADMIN}),
    Action.DOWNLOAD_FILE: _READERS,
    Action.VIEW_METADATA: _READERS,
    Action.DELETE_FILE: _ADMIN_ONLY,
    Action.MANAGE_USERS: _ADMIN_ONLY,
    Action.ASSIGN_ROLE: _ADMIN_ONLY,
    Action.REVOKE_ROLE: _ADMIN_ONLY,
    Action.MANAGE_CONFIG: _ADMIN_ONLY,
}


def allowed_roles(action: Action) -> FrozenSet[Role]:
    """Roles permitted to perform an action."""
    return ALLOWED_ROLES[Action(action)]


class PermissionEngine:
    """
    Evaluates authorization requests against the live RoleRegistry.

    Roles are read on every call; nothing is cached.
    """

    def __init__(self, registry: RoleRegistry):
        self.registry = registry

    def is_authorized(self, identity: str, action: Action) -> bool:
        return bool(self.registry.roles_of(identity) & allowed_roles(action))

    def authorize(self, identity: str, action: Action) -> None:
        """
        Check that the identity may perform the action.

        Raises:
            UnauthorizedError: If none of the identity's roles is allowed
        """
        action = Action(action)
        if not self.is_authorized(identity, action):
            logger.warning(f"Denied {action.value} for {identity}")
            raise UnauthorizedError(f"{identity} is not allowed to perform {action.value}")
        logger.debug(f"Authorized {action.value} for {identity}")
