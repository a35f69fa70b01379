"""Role catalog merging the built-in roles with custom roles from the store.

The built-in roles are an immutable ``RoleDefinitions`` value, injected where
needed so tests can swap it. ``RoleCatalog`` loads the active custom roles and
produces a ``CatalogSnapshot``: one lookup interface over both kinds of role.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.domain.entities import Role
from rolegate.infrastructure.persistence.mappers import role_to_entity
from rolegate.infrastructure.persistence.repositories import RoleRepository


@dataclass(frozen=True)
class StaticRole:
    """A built-in role with a fixed hierarchy level."""

    name: str
    hierarchy_level: int
    description: str


@dataclass(frozen=True)
class RoleDefinitions:
    """Immutable table of built-in roles.

    Attributes:
        roles: Built-in roles, highest first.
        owner: Name of the top role, which may assign any role.
        admin: Minimum role for managing the role catalog.
        moderator: Minimum role for managing user-role assignments.
        base: Lowest built-in role; users without roles count as this one.
    """

    roles: tuple[StaticRole, ...]
    owner: str
    admin: str
    moderator: str
    base: str

    def __post_init__(self) -> None:
        names = {role.name.upper() for role in self.roles}
        for name in (self.owner, self.admin, self.moderator, self.base):
            if name.upper() not in names:
                raise ValueError(f"Role '{name}' is not part of the definitions")

    def get(self, name: str) -> StaticRole | None:
        """Look up a built-in role by name, ignoring case."""
        key = name.upper()
        for role in self.roles:
            if role.name.upper() == key:
                return role
        return None

    def is_static(self, name: str) -> bool:
        return self.get(name) is not None

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(role.name for role in self.roles)

    @property
    def base_level(self) -> int:
        """Hierarchy level of the base role; custom roles sit below it."""
        return self.get(self.base).hierarchy_level  # type: ignore[union-attr]


DEFAULT_ROLE_DEFINITIONS = RoleDefinitions(
    roles=(
        StaticRole("Owner", 100, "Full control, including other owners"),
        StaticRole("Admin", 80, "Manages roles and users"),
        StaticRole("Moderator", 60, "Manages user role assignments"),
        StaticRole("Support", 40, "Assists users"),
        StaticRole("User", 20, "Base role for every registered user"),
    ),
    owner="Owner",
    admin="Admin",
    moderator="Moderator",
    base="User",
)


@dataclass(frozen=True)
class CatalogSnapshot:
    """Point-in-time view of built-in plus active custom roles.

    Keys of ``custom`` are upper-cased names; values are ``(name, level)``.
    """

    definitions: RoleDefinitions
    custom: Mapping[str, tuple[str, int]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "custom", MappingProxyType(dict(self.custom)))

    @classmethod
    def from_roles(cls, definitions: RoleDefinitions, roles: list[Role]) -> "CatalogSnapshot":
        """Build a snapshot from custom role entities, skipping inactive and built-in ones."""
        custom = {
            role.normalized_name: (role.name, role.hierarchy_level)
            for role in roles
            if role.is_active and not definitions.is_static(role.name)
        }
        return cls(definitions=definitions, custom=custom)

    def level_of(self, name: str) -> int | None:
        """Get the hierarchy level of a known role, None for unknown or inactive roles."""
        static = self.definitions.get(name)
        if static is not None:
            return static.hierarchy_level
        entry = self.custom.get(name.upper())
        return entry[1] if entry else None

    def canonical_name(self, name: str) -> str | None:
        """Get the stored spelling of a role name, None if unknown."""
        static = self.definitions.get(name)
        if static is not None:
            return static.name
        entry = self.custom.get(name.upper())
        return entry[0] if entry else None

    def all_roles(self) -> dict[str, int]:
        """Map every known role name to its hierarchy level."""
        roles = {role.name: role.hierarchy_level for role in self.definitions.roles}
        roles.update(dict(self.custom.values()))
        return roles


class RoleCatalog:
    """Single lookup interface over built-in and stored roles."""

    def __init__(
        self,
        session: AsyncSession,
        definitions: RoleDefinitions = DEFAULT_ROLE_DEFINITIONS,
    ) -> None:
        """Initialize the catalog.

        Args:
            session: SQLAlchemy async session.
            definitions: Built-in role table.
        """
        self.definitions = definitions
        self.role_repo = RoleRepository(session)

    async def snapshot(self) -> CatalogSnapshot:
        """Load the active custom roles and merge them with the built-in ones."""
        models = await self.role_repo.list_custom(active_only=True)
        return CatalogSnapshot.from_roles(self.definitions, [role_to_entity(m) for m in models])

    async def get_by_name(self, name: str) -> Role | None:
        """Get a stored role by name, ignoring case."""
        model = await self.role_repo.get_by_name(name)
        return role_to_entity(model) if model else None

    async def get_by_id(self, role_id: str) -> Role | None:
        model = await self.role_repo.get_by_id(role_id)
        return role_to_entity(model) if model else None

    async def list_roles(self, active_only: bool = False) -> list[Role]:
        """List stored roles, highest first."""
        models = await self.role_repo.list_all(active_only=active_only)
        return [role_to_entity(m) for m in models]
