"""Repository for user-role assignments."""

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.infrastructure.persistence.models import RoleModel, UserRoleModel


class UserRoleRepository:
    """Repository for the user_roles association table."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def add(self, user_id: str, role_id: str) -> UserRoleModel:
        """Assign a role to a user.

        Args:
            user_id: User ID.
            role_id: Role ID.

        Returns:
            Created assignment model.
        """
        assignment = UserRoleModel(user_id=user_id, role_id=role_id)
        self.session.add(assignment)
        await self.session.flush()
        return assignment

    async def remove(self, user_id: str, role_id: str) -> bool:
        """Remove a role from a user.

        Returns:
            True if an assignment was removed, False if none existed.
        """
        result = await self.session.execute(
            delete(UserRoleModel).where(
                UserRoleModel.user_id == user_id,
                UserRoleModel.role_id == role_id,
            )
        )
        return result.rowcount > 0

    async def exists(self, user_id: str, role_id: str) -> bool:
        """Check whether the user holds the role."""
        result = await self.session.execute(
            select(UserRoleModel.user_id)
            .where(
                UserRoleModel.user_id == user_id,
                UserRoleModel.role_id == role_id,
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def get_role_names_for_user(self, user_id: str) -> list[str]:
        """Get the names of all roles held by a user.

        Args:
            user_id: User ID.

        Returns:
            Role names ordered by descending hierarchy level.
        """
        result = await self.session.execute(
            select(RoleModel.name)
            .join(UserRoleModel, UserRoleModel.role_id == RoleModel.id)
            .where(UserRoleModel.user_id == user_id)
            .order_by(RoleModel.hierarchy_level.desc(), RoleModel.normalized_name)
        )
        return list(result.scalars().all())

    async def count_for_user(self, user_id: str) -> int:
        """Count the roles held by a user."""
        result = await self.session.execute(
            select(func.count()).select_from(UserRoleModel).where(UserRoleModel.user_id == user_id)
        )
        return result.scalar_one() or 0

    async def count_users_in_role(self, role_id: str, exclude_user_id: str | None = None) -> int:
        """Count the users holding a role.

        Args:
            role_id: Role ID.
            exclude_user_id: User to leave out of the count.

        Returns:
            Number of users holding the role.
        """
        query = select(func.count()).select_from(UserRoleModel).where(UserRoleModel.role_id == role_id)
        if exclude_user_id:
            query = query.where(UserRoleModel.user_id != exclude_user_id)
        result = await self.session.execute(query)
        return result.scalar_one() or 0
