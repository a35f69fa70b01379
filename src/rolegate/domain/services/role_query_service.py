"""Read-only role queries."""

from collections.abc import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.domain.entities import Role
from rolegate.domain.results import Failure, Result
from rolegate.domain.services.role_authorization_service import RoleAuthorizationService
from rolegate.domain.services.role_catalog import (
    DEFAULT_ROLE_DEFINITIONS,
    RoleCatalog,
    RoleDefinitions,
)
from rolegate.domain.services.role_hierarchy_service import RoleHierarchyService
from rolegate.infrastructure.persistence.repositories import UserRepository, UserRoleRepository


class RoleQueryService:
    """Lists and looks up roles and user-role assignments."""

    def __init__(
        self,
        session: AsyncSession,
        definitions: RoleDefinitions = DEFAULT_ROLE_DEFINITIONS,
    ) -> None:
        self.catalog = RoleCatalog(session, definitions)
        self.user_repo = UserRepository(session)
        self.user_role_repo = UserRoleRepository(session)

    async def list_roles(self, active_only: bool = False) -> list[Role]:
        """List stored roles, highest first."""
        return await self.catalog.list_roles(active_only=active_only)

    async def get_role_by_id(self, role_id: str) -> Result[Role]:
        role = await self.catalog.get_by_id(role_id)
        if role is None:
            return Result.fail(Failure.not_found(f"Role with ID {role_id} not found"))
        return Result.success(role)

    async def get_role_by_name(self, name: str) -> Result[Role]:
        role = await self.catalog.get_by_name(name)
        if role is None:
            return Result.fail(Failure.not_found(f"Role '{name}' not found"))
        return Result.success(role)

    async def assignable_roles(self, caller_roles: Iterable[str]) -> list[str]:
        """Get the roles the caller may assign, highest first.

        Args:
            caller_roles: Roles held by the caller.

        Returns:
            Role names ordered by descending hierarchy level, then name.
        """
        hierarchy = RoleHierarchyService(await self.catalog.snapshot())
        names = RoleAuthorizationService(hierarchy).assignable_roles(caller_roles)
        return sorted(names, key=lambda n: (-hierarchy.hierarchy_level_of(n), n.casefold()))

    async def roles_of_user(self, user_id: str) -> Result[list[str]]:
        """Get the role names held by a user, highest first."""
        if await self.user_repo.get_by_id(user_id) is None:
            return Result.fail(Failure.not_found(f"User with ID {user_id} not found"))
        return Result.success(await self.user_role_repo.get_role_names_for_user(user_id))
