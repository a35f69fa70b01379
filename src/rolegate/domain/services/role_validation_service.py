"""Business rule checks for role changes.

Each composite check returns the first violated rule as a ``Failure``, or None
when the change is allowed. The ``can_*`` predicates wrap them as booleans.
"""

import re

from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.core.config import Settings, get_settings
from rolegate.domain.entities import Role
from rolegate.domain.results import BusinessRule, Failure
from rolegate.domain.services.role_catalog import DEFAULT_ROLE_DEFINITIONS, RoleDefinitions
from rolegate.infrastructure.persistence.repositories import RoleRepository, UserRoleRepository

ROLE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
DESCRIPTION_MAX_LENGTH = 255


class RoleValidationService:
    """Validates role creation, update, deletion and Owner assignment."""

    def __init__(
        self,
        session: AsyncSession,
        definitions: RoleDefinitions = DEFAULT_ROLE_DEFINITIONS,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            session: SQLAlchemy async session.
            definitions: Built-in role table.
            settings: Optional settings instance. Defaults to the cached settings.
        """
        self.definitions = definitions
        self.settings = settings or get_settings()
        self.role_repo = RoleRepository(session)
        self.user_role_repo = UserRoleRepository(session)

    def is_reserved_name(self, name: str) -> bool:
        """Check whether the name belongs to a built-in role (any case)."""
        return self.definitions.is_static(name.strip())

    def is_valid_name_format(self, name: str) -> bool:
        """Check length bounds and allowed characters (letters, digits, '_' and '-')."""
        name = name.strip()
        if not self.settings.role_name_min_length <= len(name) <= self.settings.role_name_max_length:
            return False
        return ROLE_NAME_PATTERN.match(name) is not None

    async def is_unique_name(self, name: str, exclude_role_id: str | None = None) -> bool:
        return not await self.role_repo.name_exists(name.strip(), exclude_role_id=exclude_role_id)

    def is_valid_hierarchy_level(self, level: int) -> bool:
        """Custom roles must sit at or above 0 and strictly below the base role."""
        return 0 <= level < self.definitions.base_level

    async def has_no_users_assigned(self, role_id: str) -> bool:
        return await self.user_role_repo.count_users_in_role(role_id) == 0

    async def can_assign_owner_role(self, exclude_user_id: str | None = None) -> bool:
        """Check the Owner-count guard.

        Args:
            exclude_user_id: User to leave out of the count.

        Returns:
            True if the number of Owner holders is below ``max_owners``.
        """
        owner = await self.role_repo.get_by_name(self.definitions.owner)
        if owner is None:
            return True
        holders = await self.user_role_repo.count_users_in_role(
            owner.id, exclude_user_id=exclude_user_id
        )
        return holders < self.settings.max_owners

    async def validate_create(self, name: str, description: str, hierarchy_level: int) -> Failure | None:
        """Get the first rule a new role would violate."""
        name = (name or "").strip()
        if not name:
            return Failure.rule(BusinessRule.ROLE_NAME_REQUIRED, "Role name is required.")
        if not (description or "").strip():
            return Failure.rule(BusinessRule.ROLE_DESCRIPTION_REQUIRED, "Role description is required.")
        if self.is_reserved_name(name):
            return Failure.rule(
                BusinessRule.SYSTEM_ROLE_NAME_RESERVED,
                f"The name '{name}' is reserved for system roles.",
            )
        if not self.is_valid_name_format(name):
            return Failure.rule(
                BusinessRule.INVALID_ROLE_NAME,
                f"Role name must be {self.settings.role_name_min_length}-"
                f"{self.settings.role_name_max_length} characters of letters, digits, '_' or '-'.",
            )
        if not await self.is_unique_name(name):
            return Failure.rule(BusinessRule.ROLE_NAME_NOT_UNIQUE, f"A role named '{name}' already exists.")
        if not self.is_valid_hierarchy_level(hierarchy_level):
            return Failure.rule(
                BusinessRule.INVALID_HIERARCHY_LEVEL,
                f"Hierarchy level must be between 0 and {self.definitions.base_level - 1}.",
            )
        if len(description.strip()) > DESCRIPTION_MAX_LENGTH:
            return Failure.rule(
                BusinessRule.ROLE_VALIDATION_FAILED,
                "The role does not satisfy the validation rules.",
            )
        return None

    def validate_update(self, existing: Role, description: str, hierarchy_level: int) -> Failure | None:
        """Get the first rule an update of ``existing`` would violate."""
        if existing.is_system_role or self.definitions.is_static(existing.name):
            return Failure.rule(
                BusinessRule.SYSTEM_ROLE_NOT_MODIFIABLE,
                f"The role '{existing.name}' is a system role and cannot be modified.",
            )
        if not (description or "").strip():
            return Failure.rule(BusinessRule.ROLE_DESCRIPTION_REQUIRED, "Role description is required.")
        if not self.is_valid_hierarchy_level(hierarchy_level):
            return Failure.rule(
                BusinessRule.INVALID_HIERARCHY_LEVEL,
                f"Hierarchy level must be between 0 and {self.definitions.base_level - 1}.",
            )
        if len(description.strip()) > DESCRIPTION_MAX_LENGTH:
            return Failure.rule(
                BusinessRule.ROLE_VALIDATION_FAILED,
                "The role does not satisfy the validation rules.",
            )
        return None

    async def validate_delete(self, existing: Role) -> Failure | None:
        """Get the first rule deleting ``existing`` would violate."""
        if existing.is_system_role or self.definitions.is_static(existing.name):
            return Failure.rule(
                BusinessRule.SYSTEM_ROLE_NOT_DELETABLE,
                f"The role '{existing.name}' is a system role and cannot be deleted.",
            )
        if not await self.has_no_users_assigned(existing.id):
            return Failure.rule(
                BusinessRule.ROLE_HAS_ASSIGNED_USERS,
                f"The role '{existing.name}' still has assigned users. Remove it from all users first.",
            )
        return None

    async def can_create_role(self, name: str, description: str, hierarchy_level: int) -> bool:
        return await self.validate_create(name, description, hierarchy_level) is None

    def can_update_role(self, existing: Role, description: str, hierarchy_level: int) -> bool:
        return self.validate_update(existing, description, hierarchy_level) is None

    async def can_delete_role(self, existing: Role) -> bool:
        return await self.validate_delete(existing) is None
