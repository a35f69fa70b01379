"""Role management use-cases.

Each use-case runs the authorization gate, then the validation gate, and only
then mutates the store and commits. A rejected request leaves the store
unchanged. Store errors roll the session back and surface as internal failures.
"""

import uuid
from collections.abc import Iterable
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.core.config import Settings, get_settings
from rolegate.core.locks import KeyedLock
from rolegate.core.logging import get_logger
from rolegate.domain.entities import Role
from rolegate.domain.results import BusinessRule, Failure, Result
from rolegate.domain.services.role_authorization_service import RoleAuthorizationService
from rolegate.domain.services.role_catalog import (
    DEFAULT_ROLE_DEFINITIONS,
    RoleCatalog,
    RoleDefinitions,
)
from rolegate.domain.services.role_hierarchy_service import RoleHierarchyService
from rolegate.domain.services.role_validation_service import RoleValidationService
from rolegate.infrastructure.persistence.mappers import role_to_entity
from rolegate.infrastructure.persistence.models import RoleModel
from rolegate.infrastructure.persistence.repositories import (
    RoleRepository,
    UserRepository,
    UserRoleRepository,
)

logger = get_logger(__name__)

OWNER_ASSIGNMENT_KEY = "owner-assignment"

# Shared by every service instance in the process
owner_assignment_lock = KeyedLock()


class RoleManagementService:
    """Creates, updates and deletes roles and manages user-role assignments."""

    def __init__(
        self,
        session: AsyncSession,
        definitions: RoleDefinitions = DEFAULT_ROLE_DEFINITIONS,
        settings: Settings | None = None,
        lock: KeyedLock | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            session: SQLAlchemy async session.
            definitions: Built-in role table.
            settings: Optional settings instance. Defaults to the cached settings.
            lock: Lock registry serializing Owner assignments.
        """
        self.session = session
        self.definitions = definitions
        self.settings = settings or get_settings()
        self.lock = lock or owner_assignment_lock
        self.catalog = RoleCatalog(session, definitions)
        self.validator = RoleValidationService(session, definitions, self.settings)
        self.role_repo = RoleRepository(session)
        self.user_repo = UserRepository(session)
        self.user_role_repo = UserRoleRepository(session)

    async def _authorization(self) -> RoleAuthorizationService:
        snapshot = await self.catalog.snapshot()
        return RoleAuthorizationService(RoleHierarchyService(snapshot))

    async def _store_failure(self, error: SQLAlchemyError, action: str, **context: object) -> Result:
        await self.session.rollback()
        logger.error(f"Failed to {action}", error=str(error), **context)
        return Result.fail(Failure.internal())

    async def create_role(
        self,
        name: str,
        description: str,
        hierarchy_level: int,
        caller_roles: Iterable[str],
    ) -> Result[Role]:
        """Create a custom role.

        Args:
            name: Role name.
            description: Purpose of the role.
            hierarchy_level: Level below the base role.
            caller_roles: Roles held by the caller.

        Returns:
            Result holding the created role.
        """
        caller_roles = list(caller_roles)
        logger.info("Attempting to create role", role_name=name)

        authz = await self._authorization()
        if not authz.can_manage_roles(caller_roles):
            logger.warning("Insufficient authority to create roles", caller_roles=caller_roles)
            return Result.fail(Failure.unauthorized("Insufficient authority to create roles"))
        if not authz.can_create_role_with_hierarchy(caller_roles, hierarchy_level):
            logger.warning(
                "Cannot create role at this hierarchy level",
                caller_roles=caller_roles,
                hierarchy_level=hierarchy_level,
            )
            return Result.fail(Failure.unauthorized("Cannot create role with this hierarchy level"))

        failure = await self.validator.validate_create(name, description, hierarchy_level)
        if failure is not None:
            logger.warning("Role creation validation failed", role_name=name, rule=failure.code)
            return Result.fail(failure)

        try:
            model = await self.role_repo.create(
                RoleModel(
                    id=str(uuid.uuid4()),
                    name=name.strip(),
                    description=description.strip(),
                    hierarchy_level=hierarchy_level,
                    is_system_role=False,
                    is_active=True,
                )
            )
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            logger.warning("Role name taken concurrently", role_name=name)
            return Result.fail(
                Failure.rule(BusinessRule.ROLE_NAME_NOT_UNIQUE, f"A role named '{name}' already exists.")
            )
        except SQLAlchemyError as e:
            return await self._store_failure(e, "create role", role_name=name)

        logger.info("Role created", role_id=model.id, role_name=model.name)
        return Result.success(role_to_entity(model))

    async def update_role(
        self,
        role_id: str,
        description: str,
        hierarchy_level: int,
        caller_roles: Iterable[str],
    ) -> Result[Role]:
        """Update the description and hierarchy level of a custom role.

        Args:
            role_id: Role to update.
            description: New description.
            hierarchy_level: New hierarchy level.
            caller_roles: Roles held by the caller.

        Returns:
            Result holding the updated role.
        """
        caller_roles = list(caller_roles)
        logger.info("Attempting to update role", role_id=role_id)

        authz = await self._authorization()
        if not authz.can_manage_roles(caller_roles):
            logger.warning("Insufficient authority to update roles", caller_roles=caller_roles)
            return Result.fail(Failure.unauthorized("Insufficient authority to update roles"))

        model = await self.role_repo.get_by_id(role_id)
        if model is None:
            logger.warning("Attempted to update non-existent role", role_id=role_id)
            return Result.fail(Failure.not_found(f"Role with ID {role_id} not found"))

        if not authz.can_update_role_with_hierarchy(caller_roles, model.hierarchy_level, hierarchy_level):
            logger.warning(
                "Cannot update role hierarchy",
                caller_roles=caller_roles,
                role_id=role_id,
                hierarchy_level=hierarchy_level,
            )
            return Result.fail(Failure.unauthorized("Cannot update role with this hierarchy level"))

        failure = self.validator.validate_update(role_to_entity(model), description, hierarchy_level)
        if failure is not None:
            logger.warning("Role update validation failed", role_id=role_id, rule=failure.code)
            return Result.fail(failure)

        try:
            model.description = description.strip()
            model.hierarchy_level = hierarchy_level
            model.updated_at = datetime.now(timezone.utc)
            await self.role_repo.update(model)
            await self.session.commit()
        except SQLAlchemyError as e:
            return await self._store_failure(e, "update role", role_id=role_id)

        logger.info("Role updated", role_id=role_id)
        return Result.success(role_to_entity(model))

    async def delete_role(self, role_id: str, caller_roles: Iterable[str]) -> Result[None]:
        """Delete a custom role that no user holds.

        Args:
            role_id: Role to delete.
            caller_roles: Roles held by the caller.
        """
        caller_roles = list(caller_roles)
        logger.info("Attempting to delete role", role_id=role_id)

        authz = await self._authorization()
        if not authz.can_manage_roles(caller_roles):
            logger.warning("Insufficient authority to delete roles", caller_roles=caller_roles)
            return Result.fail(Failure.unauthorized("Insufficient authority to delete roles"))

        model = await self.role_repo.get_by_id(role_id)
        if model is None:
            logger.warning("Attempted to delete non-existent role", role_id=role_id)
            return Result.fail(Failure.not_found(f"Role with ID {role_id} not found"))

        failure = await self.validator.validate_delete(role_to_entity(model))
        if failure is not None:
            logger.warning("Role deletion validation failed", role_id=role_id, rule=failure.code)
            return Result.fail(failure)

        try:
            await self.role_repo.delete(model)
            await self.session.commit()
        except SQLAlchemyError as e:
            return await self._store_failure(e, "delete role", role_id=role_id)

        logger.info("Role deleted", role_id=role_id)
        return Result.success()

    async def assign_role_to_user(
        self, user_id: str, role_name: str, caller_roles: Iterable[str]
    ) -> Result[list[str]]:
        """Give a role to a user.

        Owner assignments check the Owner-count guard and insert under one
        process-wide lock, in one transaction.

        Args:
            user_id: User receiving the role.
            role_name: Role to assign.
            caller_roles: Roles held by the caller.

        Returns:
            Result holding the user's role names after the assignment.
        """
        caller_roles = list(caller_roles)
        logger.info("Attempting to assign role", role_name=role_name, user_id=user_id)

        authz = await self._authorization()
        if not authz.can_manage_assignments(caller_roles):
            logger.warning("Insufficient authority to assign roles", caller_roles=caller_roles)
            return Result.fail(Failure.unauthorized("Insufficient authority to assign roles"))
        if not authz.can_assign_role(caller_roles, role_name):
            logger.warning("Cannot assign role", caller_roles=caller_roles, role_name=role_name)
            return Result.fail(Failure.unauthorized(f"Cannot assign role {role_name}"))

        if await self.user_repo.get_by_id(user_id) is None:
            logger.warning("Attempted to assign role to non-existent user", user_id=user_id)
            return Result.fail(Failure.not_found(f"User with ID {user_id} not found"))
        role = await self.role_repo.get_by_name(role_name)
        if role is None:
            return Result.fail(Failure.not_found(f"Role '{role_name}' not found"))

        if await self.user_role_repo.exists(user_id, role.id):
            return Result.fail(
                Failure.rule(
                    BusinessRule.ROLE_ALREADY_ASSIGNED,
                    f"User already holds the role '{role.name}'.",
                )
            )
        if await self.user_role_repo.count_for_user(user_id) >= self.settings.max_roles_per_user:
            return Result.fail(
                Failure.rule(
                    BusinessRule.MAX_ROLES_PER_USER_EXCEEDED,
                    f"A user can hold at most {self.settings.max_roles_per_user} roles.",
                )
            )

        try:
            if role.normalized_name == self.definitions.owner.upper():
                async with self.lock.hold(OWNER_ASSIGNMENT_KEY):
                    if not await self.validator.can_assign_owner_role():
                        logger.warning(
                            "Maximum number of owners reached",
                            max_owners=self.settings.max_owners,
                        )
                        return Result.fail(
                            Failure.rule(
                                BusinessRule.MAX_OWNERS_EXCEEDED,
                                f"Cannot assign the Owner role. At most "
                                f"{self.settings.max_owners} owners are allowed.",
                            )
                        )
                    await self.user_role_repo.add(user_id, role.id)
                    await self.session.commit()
            else:
                await self.user_role_repo.add(user_id, role.id)
                await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            return Result.fail(
                Failure.rule(
                    BusinessRule.ROLE_ALREADY_ASSIGNED,
                    f"User already holds the role '{role.name}'.",
                )
            )
        except SQLAlchemyError as e:
            return await self._store_failure(e, "assign role", role_name=role_name, user_id=user_id)

        logger.info("Role assigned", role_name=role.name, user_id=user_id)
        return Result.success(await self.user_role_repo.get_role_names_for_user(user_id))

    async def remove_role_from_user(
        self, user_id: str, role_name: str, caller_roles: Iterable[str]
    ) -> Result[list[str]]:
        """Take a role away from a user.

        Args:
            user_id: User losing the role.
            role_name: Role to remove.
            caller_roles: Roles held by the caller.

        Returns:
            Result holding the user's role names after the removal.
        """
        caller_roles = list(caller_roles)
        logger.info("Attempting to remove role", role_name=role_name, user_id=user_id)

        authz = await self._authorization()
        if not authz.can_manage_assignments(caller_roles):
            logger.warning("Insufficient authority to remove roles", caller_roles=caller_roles)
            return Result.fail(Failure.unauthorized("Insufficient authority to remove roles"))
        if not authz.can_remove_role(caller_roles, role_name):
            logger.warning("Cannot remove role", caller_roles=caller_roles, role_name=role_name)
            return Result.fail(Failure.unauthorized(f"Cannot remove role {role_name}"))

        if await self.user_repo.get_by_id(user_id) is None:
            logger.warning("Attempted to remove role from non-existent user", user_id=user_id)
            return Result.fail(Failure.not_found(f"User with ID {user_id} not found"))
        role = await self.role_repo.get_by_name(role_name)
        if role is None:
            return Result.fail(Failure.not_found(f"Role '{role_name}' not found"))

        try:
            removed = await self.user_role_repo.remove(user_id, role.id)
            if not removed:
                await self.session.rollback()
                return Result.fail(
                    Failure.rule(
                        BusinessRule.ROLE_NOT_ASSIGNED,
                        f"User does not hold the role '{role.name}'.",
                    )
                )
            await self.session.commit()
        except SQLAlchemyError as e:
            return await self._store_failure(e, "remove role", role_name=role_name, user_id=user_id)

        logger.info("Role removed", role_name=role.name, user_id=user_id)
        return Result.success(await self.user_role_repo.get_role_names_for_user(user_id))
