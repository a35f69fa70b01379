"""Role repository for database operations."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.infrastructure.persistence.models import RoleModel


class RoleRepository:
    """Repository for role database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def create(self, role: RoleModel) -> RoleModel:
        """Persist a new role.

        Args:
            role: Role model to create.

        Returns:
            Created role model.
        """
        role.normalized_name = role.name.upper()
        self.session.add(role)
        await self.session.flush()
        return role

    async def update(self, role: RoleModel) -> RoleModel:
        """Flush changes made to a role."""
        await self.session.flush()
        return role

    async def delete(self, role: RoleModel) -> None:
        """Delete a role."""
        await self.session.delete(role)
        await self.session.flush()

    async def get_by_id(self, role_id: str) -> RoleModel | None:
        """Get a role by ID.

        Args:
            role_id: Role ID (UUID string).

        Returns:
            Role model if found, None otherwise.
        """
        result = await self.session.execute(
            select(RoleModel).where(RoleModel.id == role_id)
        )
        return result.scalar_one_or_none()

    async def get_by_name(self, name: str) -> RoleModel | None:
        """Get a role by name, ignoring case.

        Args:
            name: Role name (e.g., 'Admin', 'auditor').

        Returns:
            Role model if found, None otherwise.
        """
        result = await self.session.execute(
            select(RoleModel).where(RoleModel.normalized_name == name.upper())
        )
        return result.scalar_one_or_none()

    async def list_all(self, active_only: bool = False) -> list[RoleModel]:
        """List roles ordered by descending hierarchy level, then name.

        Args:
            active_only: Only return active roles.

        Returns:
            List of role models.
        """
        query = select(RoleModel)
        if active_only:
            query = query.where(RoleModel.is_active.is_(True))
        query = query.order_by(RoleModel.hierarchy_level.desc(), RoleModel.normalized_name)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list_custom(self, active_only: bool = True) -> list[RoleModel]:
        """List roles that are not system roles.

        Args:
            active_only: Only return active roles.

        Returns:
            List of custom role models.
        """
        query = select(RoleModel).where(RoleModel.is_system_role.is_(False))
        if active_only:
            query = query.where(RoleModel.is_active.is_(True))
        result = await self.session.execute(query.order_by(RoleModel.normalized_name))
        return list(result.scalars().all())

    async def name_exists(self, name: str, exclude_role_id: str | None = None) -> bool:
        """Check whether a role with this name (ignoring case) exists.

        Args:
            name: Role name to check.
            exclude_role_id: Role ID to ignore (for updates).

        Returns:
            True if another role already uses the name.
        """
        query = select(RoleModel.id).where(RoleModel.normalized_name == name.upper())
        if exclude_role_id:
            query = query.where(RoleModel.id != exclude_role_id)
        result = await self.session.execute(query.limit(1))
        return result.scalar_one_or_none() is not None
