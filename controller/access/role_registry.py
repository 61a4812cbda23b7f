"""Identity -> role set mapping with the at-least-one-Admin invariant."""

import threading
from typing import Dict, List, Optional, Set

from common.exceptions import (
    AlreadyInitializedError,
    LastAdminViolationError,
    RoleAlreadyAssignedError,
    RoleNotPresentError,
    ValidationError,
)
from common.logging_config import get_logger
from common.types import Role

logger = get_logger(__name__)


def _require_identity(identity: str) -> None:
    if not isinstance(identity, str) or not identity.strip():
        raise ValidationError("Identity must be a non-empty string")


class RoleRegistry:
    """
    Thread-safe mapping of identities to role sets.

    Once an Admin exists, every removal is checked under the registry lock
    so the registry never returns to zero Admins. An identity with no roles
    is equivalent to an absent one.
    """

    def __init__(self):
        self._roles: Dict[str, Set[Role]] = {}
        self._lock = threading.RLock()

    def grant(self, identity: str, role: Role) -> Set[Role]:
        """
        Add a role to an identity.

        Returns:
            The identity's roles after the grant

        Raises:
            RoleAlreadyAssignedError: If the identity already holds the role
        """
        _require_identity(identity)
        role = Role.parse(role)

        with self._lock:
            roles = self._roles.setdefault(identity, set())
            if role in roles:
                raise RoleAlreadyAssignedError(f"{identity} already has role {role.value}")
            roles.add(role)
            result = set(roles)

        logger.info(f"Granted role {role.value} to {identity}")
        return result

    def revoke(self, identity: str, role: Role) -> Set[Role]:
        """
        Remove a role from an identity.

        Returns:
            The identity's roles after the revoke

        Raises:
            RoleNotPresentError: If the identity does not hold the role
            LastAdminViolationError: If this would leave no Admin at all
        """
        _require_identity(identity)
        role = Role.parse(role)

        with self._lock:
            roles = self._roles.get(identity, set())
            if role not in roles:
                raise RoleNotPresentError(f"{identity} does not have role {role.value}")

            if role is Role.ADMIN and len(self._admins_locked()) <= 1:
                logger.warning(f"Refused to revoke last Admin from {identity}")
                raise LastAdminViolationError("Cannot revoke the last remaining Admin")

            roles.discard(role)
            result = set(roles)

        logger.info(f"Revoked role {role.value} from {identity}")
        return result

    def roles_of(self, identity: str) -> Set[Role]:
        """Roles held by an identity; empty set for unknown identities."""
        with self._lock:
            return set(self._roles.get(identity, ()))

    def init_admin(self, identity: str) -> Set[Role]:
        """
        Bootstrap the very first Admin.

        Raises:
            AlreadyInitializedError: If any identity already holds Admin
        """
        _require_identity(identity)

        with self._lock:
            if self._admins_locked():
                raise AlreadyInitializedError("An Admin already exists")
            roles = self._roles.setdefault(identity, set())
            roles.add(Role.ADMIN)
            result = set(roles)

        logger.info(f"Bootstrapped initial Admin {identity}")
        return result

    def has_admin(self) -> bool:
        with self._lock:
            return bool(self._admins_locked())

    def admins(self) -> List[str]:
        with self._lock:
            return sorted(self._admins_locked())

    def principals(self) -> Dict[str, Set[Role]]:
        """Identities holding at least one role."""
        with self._lock:
            return {
                identity: set(roles)
                for identity, roles in self._roles.items()
                if roles
            }

    def _admins_locked(self) -> List[str]:
        return [identity for identity, roles in self._roles.items() if Role.ADMIN in roles]

    def snapshot(self) -> Dict[str, List[str]]:
        with self._lock:
            return {
                identity: sorted(role.value for role in roles)
                for identity, roles in self._roles.items()
                if roles
            }

    @classmethod
    def from_snapshot(cls, data: Optional[Dict[str, List[str]]]) -> "RoleRegistry":
        """
        Rebuild a registry from `snapshot()` output.

        Raises:
            ValidationError: If an identity or role name is invalid
        """
        registry = cls()
        for identity, role_names in (data or {}).items():
            _require_identity(identity)
            roles = {Role.parse(name) for name in role_names}
            if roles:
                registry._roles[identity] = roles
        return registry
