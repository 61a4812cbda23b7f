"""Role registry and permission checks."""

from controller.access.permissions import PermissionEngine, allowed_roles
from controller.access.role_registry import RoleRegistry

__all__ = [
    "PermissionEngine",
    "RoleRegistry",
    "allowed_roles",
]
