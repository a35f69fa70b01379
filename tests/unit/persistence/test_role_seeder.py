"""Unit tests for RoleSeeder."""

import pytest

from rolegate.domain.services.role_catalog import RoleDefinitions, StaticRole
from rolegate.infrastructure.persistence.repositories import RoleRepository
from rolegate.infrastructure.persistence.role_seeder import RoleSeeder


class TestRoleSeeder:
    """Tests for RoleSeeder."""

    @pytest.mark.asyncio
    async def test_seeded_roles(self, db_session):
        roles = await RoleRepository(db_session).list_all()

        assert [(r.name, r.hierarchy_level) for r in roles] == [
            ("Owner", 100),
            ("Admin", 80),
            ("Moderator", 60),
            ("Support", 40),
            ("User", 20),
        ]
        assert all(r.is_system_role for r in roles)

    @pytest.mark.asyncio
    async def test_seeding_is_idempotent(self, db_session):
        assert await RoleSeeder(db_session).seed() == 0
        assert len(await RoleRepository(db_session).list_all()) == 5

    @pytest.mark.asyncio
    async def test_realigns_tampered_role(self, db_session):
        repo = RoleRepository(db_session)
        admin = await repo.get_by_name("Admin")
        admin.hierarchy_level = 1
        admin.is_active = False
        await db_session.commit()

        await RoleSeeder(db_session).seed()

        admin = await repo.get_by_name("Admin")
        assert admin.hierarchy_level == 80
        assert admin.is_active is True

    @pytest.mark.asyncio
    async def test_custom_definitions(self, db_session):
        definitions = RoleDefinitions(
            roles=(
                StaticRole("Owner", 100, "Owner"),
                StaticRole("Admin", 80, "Admin"),
                StaticRole("Moderator", 60, "Moderator"),
                StaticRole("Auditor", 50, "Audits"),
                StaticRole("User", 20, "Base"),
            ),
            owner="Owner",
            admin="Admin",
            moderator="Moderator",
            base="User",
        )

        assert await RoleSeeder(db_session, definitions).seed() == 1
        auditor = await RoleRepository(db_session).get_by_name("auditor")
        assert auditor.is_system_role is True
