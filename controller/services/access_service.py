"""Role management and runtime configuration service."""

from typing import Any, Dict, Set, Union

from pydantic import ValidationError as PydanticValidationError

from common.exceptions import ValidationError
from common.logging_config import get_logger
from common.types import Action, Role
from controller.config import ConfigUpdate, RuntimeConfig
from controller.store import Store

logger = get_logger(__name__)


class AccessService:
    def __init__(self, store: Store):
        self.store = store

    def grant_role(self, caller: str, target: str, role: Union[Role, str]) -> Set[Role]:
        """
        Grant `role` to `target`. Requires the assign_role permission.

        Returns:
            The target's roles after the grant
        """
        role = Role.parse(role)
        with self.store.transaction() as store:
            store.permissions.authorize(caller, Action.ASSIGN_ROLE)
            roles = store.roles.grant(target, role)

        logger.info(f"{caller} granted {role.value} to {target}")
        return roles

    def revoke_role(self, caller: str, target: str, role: Union[Role, str]) -> Set[Role]:
        """
        Revoke `role` from `target`. Requires the revoke_role permission.

        The last remaining Admin can never be revoked, including by itself.

        Returns:
            The target's roles after the revoke
        """
        role = Role.parse(role)
        with self.store.transaction() as store:
            store.permissions.authorize(caller, Action.REVOKE_ROLE)
            roles = store.roles.revoke(target, role)

        logger.info(f"{caller} revoked {role.value} from {target}")
        return roles

    def roles_of(self, identity: str) -> Set[Role]:
        return self.store.roles.roles_of(identity)

    def initialize_admin(self, identity: str) -> Set[Role]:
        """
        One-time bootstrap of the first Admin; fails once any Admin exists.
        """
        with self.store.transaction() as store:
            return store.roles.init_admin(identity)

    def list_principals(self, caller: str) -> Dict[str, Set[Role]]:
        with self.store.transaction() as store:
            store.permissions.authorize(caller, Action.MANAGE_USERS)
            return store.roles.principals()

    def get_config(self) -> RuntimeConfig:
        return self.store.config

    def update_config(
        self,
        caller: str,
        update: Union[ConfigUpdate, Dict[str, Any]],
    ) -> RuntimeConfig:
        """
        Apply a partial config update. Admin only.

        Raises:
            UnauthorizedError: Caller may not manage config
            ValidationError: A value is out of range or malformed
        """
        if not isinstance(update, ConfigUpdate):
            try:
                update = ConfigUpdate.model_validate(update)
            except PydanticValidationError as e:
                raise ValidationError(f"Invalid config update: {e}")

        with self.store.transaction() as store:
            store.permissions.authorize(caller, Action.MANAGE_CONFIG)
            store.config = update.apply_to(store.config)
            config = store.config

        logger.info(
            f"Config updated by {caller}: max_file_size_bytes={config.max_file_size_bytes} "
            f"uploads_enabled={config.uploads_enabled} domain={config.domain}"
        )
        return config

    def reset_config(self, caller: str) -> RuntimeConfig:
        with self.store.transaction() as store:
            store.permissions.authorize(caller, Action.MANAGE_CONFIG)
            store.config = RuntimeConfig()
            config = store.config

        logger.info(f"Config reset to defaults by {caller}")
        return config
