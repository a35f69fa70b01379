"""Authorization decisions for role management.

Every decision starts from the caller's highest role. Owner callers may assign
any valid role and remove any role except Owner; everyone else needs strictly
more authority than the role they act on.
"""

from collections.abc import Iterable

from rolegate.domain.services.role_hierarchy_service import RoleHierarchyService


class RoleAuthorizationService:
    """Decides whether a caller may act on a role."""

    def __init__(self, hierarchy: RoleHierarchyService) -> None:
        """Initialize the service.

        Args:
            hierarchy: Hierarchy comparisons over the current catalog.
        """
        self.hierarchy = hierarchy
        self.definitions = hierarchy.definitions

    def _caller_level(self, caller_roles: Iterable[str]) -> int:
        return self.hierarchy.hierarchy_level_of(self.hierarchy.highest_role(caller_roles))

    def can_assign_role(self, caller_roles: Iterable[str], target_role: str) -> bool:
        """Check whether the caller may give ``target_role`` to a user.

        Args:
            caller_roles: Roles held by the caller.
            target_role: Role to assign.

        Returns:
            False for an invalid target. True for Owner callers. Otherwise True
            only if the caller's highest role is strictly above the target.
        """
        if not self.hierarchy.is_valid_role(target_role):
            return False
        highest = self.hierarchy.highest_role(caller_roles)
        if self.hierarchy.is_owner(highest):
            return True
        return self.hierarchy.is_higher_than(highest, target_role)

    def can_remove_role(self, caller_roles: Iterable[str], target_role: str) -> bool:
        """Check whether the caller may take ``target_role`` away from a user.

        Same as ``can_assign_role`` except that Owner itself can never be
        removed through this path.
        """
        if not self.hierarchy.is_valid_role(target_role):
            return False
        highest = self.hierarchy.highest_role(caller_roles)
        if self.hierarchy.is_owner(highest):
            return not self.hierarchy.is_owner(target_role)
        return self.hierarchy.is_higher_than(highest, target_role)

    def has_sufficient_authority(self, caller_roles: Iterable[str], required_role: str) -> bool:
        """Check whether the caller's highest role is at least ``required_role``."""
        if not self.hierarchy.is_valid_role(required_role):
            return False
        highest = self.hierarchy.highest_role(caller_roles)
        return self.hierarchy.is_at_least_as_high_as(highest, required_role)

    def can_create_role_with_hierarchy(self, caller_roles: Iterable[str], target_level: int) -> bool:
        """Check whether the caller may create a role at ``target_level``."""
        return self._caller_level(caller_roles) > target_level

    def can_update_role_with_hierarchy(
        self, caller_roles: Iterable[str], current_level: int, new_level: int
    ) -> bool:
        """Check whether the caller may move a role from ``current_level`` to ``new_level``."""
        caller_level = self._caller_level(caller_roles)
        return caller_level > current_level and caller_level > new_level

    def assignable_roles(self, caller_roles: Iterable[str]) -> set[str]:
        """Get the roles the caller may assign."""
        highest = self.hierarchy.highest_role(caller_roles)
        if self.hierarchy.is_owner(highest):
            return self.hierarchy.valid_roles()
        return self.hierarchy.subordinate_roles(highest)

    def can_manage_roles(self, caller_roles: Iterable[str]) -> bool:
        """Role CRUD requires Admin or above."""
        return self.has_sufficient_authority(caller_roles, self.definitions.admin)

    def can_manage_assignments(self, caller_roles: Iterable[str]) -> bool:
        """User-role assignment requires Moderator or above."""
        return self.has_sufficient_authority(caller_roles, self.definitions.moderator)
