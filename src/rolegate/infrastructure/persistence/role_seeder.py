"""Seeds the built-in roles into the role store."""

from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.core.logging import get_logger
from rolegate.domain.services.role_catalog import DEFAULT_ROLE_DEFINITIONS, RoleDefinitions
from rolegate.infrastructure.persistence.models import RoleModel
from rolegate.infrastructure.persistence.repositories import RoleRepository

logger = get_logger(__name__)


class RoleSeeder:
    """Creates a stored row for every built-in role so it can be assigned.

    Seeding is idempotent: existing rows are brought back in line with the
    definitions (level, system flag, active) and missing ones are created.
    """

    def __init__(
        self,
        session: AsyncSession,
        definitions: RoleDefinitions = DEFAULT_ROLE_DEFINITIONS,
    ) -> None:
        self.session = session
        self.definitions = definitions
        self.role_repo = RoleRepository(session)

    async def seed(self) -> int:
        """Seed the built-in roles and commit.

        Returns:
            Number of roles created.
        """
        created = 0
        for static in self.definitions.roles:
            existing = await self.role_repo.get_by_name(static.name)
            if existing is None:
                await self.role_repo.create(
                    RoleModel(
                        name=static.name,
                        description=static.description,
                        hierarchy_level=static.hierarchy_level,
                        is_system_role=True,
                        is_active=True,
                    )
                )
                created += 1
                logger.info("Seeded system role", role_name=static.name)
            elif (
                existing.hierarchy_level != static.hierarchy_level
                or not existing.is_system_role
                or not existing.is_active
            ):
                existing.hierarchy_level = static.hierarchy_level
                existing.is_system_role = True
                existing.is_active = True
                await self.role_repo.update(existing)
                logger.warning("Realigned system role", role_name=static.name)

        await self.session.commit()
        return created
