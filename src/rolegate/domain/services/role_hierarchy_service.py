"""Hierarchy comparisons over role names.

All functions are pure with respect to a ``CatalogSnapshot``. Unknown and
inactive roles count as the base role.
"""

from collections.abc import Iterable

from rolegate.domain.services.role_catalog import CatalogSnapshot


class RoleHierarchyService:
    """Compares roles by hierarchy level."""

    def __init__(self, catalog: CatalogSnapshot) -> None:
        """Initialize the service.

        Args:
            catalog: Merged view of built-in and custom roles.
        """
        self.catalog = catalog
        self.definitions = catalog.definitions

    def hierarchy_level_of(self, role_name: str) -> int:
        """Get the hierarchy level of a role.

        Built-in roles are looked up first, then active custom roles.

        Args:
            role_name: Role name, any case.

        Returns:
            The role's level, or the base role's level if the role is unknown.
        """
        level = self.catalog.level_of(role_name)
        return self.definitions.base_level if level is None else level

    def highest_role(self, roles: Iterable[str]) -> str:
        """Get the role with the greatest hierarchy level.

        Ties are broken by case-insensitive name order, so the result does not
        depend on the order of ``roles``.

        Args:
            roles: Role names.

        Returns:
            Name of the highest role, or the base role for an empty input.
        """
        best: tuple[int, str] | None = None
        best_name = self.definitions.base
        for name in roles:
            key = (-self.hierarchy_level_of(name), name.casefold())
            if best is None or key < best:
                best = key
                best_name = self.catalog.canonical_name(name) or name
        return best_name

    def is_higher_than(self, role_a: str, role_b: str) -> bool:
        return self.hierarchy_level_of(role_a) > self.hierarchy_level_of(role_b)

    def is_at_least_as_high_as(self, role_a: str, role_b: str) -> bool:
        return self.hierarchy_level_of(role_a) >= self.hierarchy_level_of(role_b)

    def subordinate_roles(self, role_name: str) -> set[str]:
        """Get every known role strictly below ``role_name``."""
        level = self.hierarchy_level_of(role_name)
        return {name for name, other in self.catalog.all_roles().items() if other < level}

    def is_valid_role(self, role_name: str) -> bool:
        """Check whether the role is built-in, or custom and active."""
        return self.catalog.level_of(role_name) is not None

    def is_owner(self, role_name: str) -> bool:
        return role_name.upper() == self.definitions.owner.upper()

    def valid_roles(self) -> set[str]:
        """Get the names of all built-in and active custom roles."""
        return set(self.catalog.all_roles())
