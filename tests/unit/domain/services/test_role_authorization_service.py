"""Unit tests for RoleAuthorizationService."""

import pytest

from rolegate.domain.services.role_authorization_service import RoleAuthorizationService
from rolegate.domain.services.role_hierarchy_service import RoleHierarchyService


@pytest.fixture
def authz(snapshot):
    return RoleAuthorizationService(RoleHierarchyService(snapshot))


class TestCanAssignRole:
    """Tests for can_assign_role."""

    def test_moderator_cannot_assign_admin(self, authz):
        assert authz.can_assign_role({"Moderator"}, "Admin") is False

    def test_moderator_can_assign_support(self, authz):
        assert authz.can_assign_role({"Moderator"}, "Support") is True

    def test_cannot_assign_own_level(self, authz):
        assert authz.can_assign_role({"Admin"}, "Admin") is False

    @pytest.mark.parametrize("target", ["Owner", "Admin", "Moderator", "Support", "User", "Auditor"])
    def test_owner_can_assign_any_valid_role(self, authz, target):
        assert authz.can_assign_role({"Owner"}, target) is True

    def test_invalid_target_is_refused_even_for_owner(self, authz):
        assert authz.can_assign_role({"Owner"}, "Ghost") is False

    def test_uses_highest_caller_role(self, authz):
        assert authz.can_assign_role({"User", "Admin"}, "Moderator") is True

    def test_no_roles_acts_as_base(self, authz):
        assert authz.can_assign_role(set(), "Auditor") is True
        assert authz.can_assign_role(set(), "User") is False


class TestCanRemoveRole:
    """Tests for can_remove_role."""

    def test_owner_cannot_remove_owner(self, authz):
        assert authz.can_remove_role({"Owner"}, "Owner") is False

    def test_owner_can_remove_admin(self, authz):
        assert authz.can_remove_role({"Owner"}, "Admin") is True

    def test_admin_can_remove_lower_role(self, authz):
        assert authz.can_remove_role({"Admin"}, "Moderator") is True
        assert authz.can_remove_role({"Admin"}, "Owner") is False

    def test_invalid_target(self, authz):
        assert authz.can_remove_role({"Owner"}, "Ghost") is False


class TestAuthorityChecks:
    """Tests for has_sufficient_authority and the management gates."""

    def test_sufficient_authority_is_non_strict(self, authz):
        assert authz.has_sufficient_authority({"Admin"}, "Admin") is True
        assert authz.has_sufficient_authority({"Support"}, "Moderator") is False

    def test_invalid_required_role(self, authz):
        assert authz.has_sufficient_authority({"Owner"}, "Ghost") is False

    @pytest.mark.parametrize(
        "roles, expected",
        [({"Owner"}, True), ({"Admin"}, True), ({"Moderator"}, False), (set(), False)],
    )
    def test_can_manage_roles(self, authz, roles, expected):
        assert authz.can_manage_roles(roles) is expected

    @pytest.mark.parametrize(
        "roles, expected",
        [({"Admin"}, True), ({"Moderator"}, True), ({"Support"}, False), ({"Auditor"}, False)],
    )
    def test_can_manage_assignments(self, authz, roles, expected):
        assert authz.can_manage_assignments(roles) is expected


class TestHierarchyGates:
    """Tests for creating and updating roles at a hierarchy level."""

    def test_create_requires_strictly_greater_level(self, authz):
        assert authz.can_create_role_with_hierarchy({"Admin"}, 79) is True
        assert authz.can_create_role_with_hierarchy({"Admin"}, 80) is False

    @pytest.mark.parametrize("level", [0, 10, 19, 99])
    def test_owner_can_create_below_own_level(self, authz, level):
        assert authz.can_create_role_with_hierarchy({"Owner"}, level) is True

    def test_update_requires_exceeding_both_levels(self, authz):
        assert authz.can_update_role_with_hierarchy({"Moderator"}, 10, 15) is True
        assert authz.can_update_role_with_hierarchy({"Moderator"}, 70, 15) is False
        assert authz.can_update_role_with_hierarchy({"Moderator"}, 10, 60) is False


class TestAssignableRoles:
    """Tests for assignable_roles."""

    def test_owner_gets_every_valid_role(self, authz):
        assert authz.assignable_roles({"Owner"}) == {
            "Owner", "Admin", "Moderator", "Support", "User", "Auditor", "Intern"
        }

    def test_moderator_gets_subordinates(self, authz):
        assert authz.assignable_roles({"Moderator"}) == {"Support", "User", "Auditor", "Intern"}
