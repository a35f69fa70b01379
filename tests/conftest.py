"""Pytest configuration for all tests."""

import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from rolegate.core.config import Settings
from rolegate.core.locks import KeyedLock
from rolegate.domain.services.role_catalog import DEFAULT_ROLE_DEFINITIONS, CatalogSnapshot
from rolegate.domain.services.selection_challenge_cache import InMemoryChallengeCache
from rolegate.infrastructure.auth import JWTService, hash_password
from rolegate.infrastructure.persistence.database import Base
from rolegate.infrastructure.persistence.models import (
    RefreshTokenModel,
    RoleModel,
    UserAccountModel,
    UserModel,
    UserRoleModel,
)
from rolegate.infrastructure.persistence.role_seeder import RoleSeeder

TEST_SECRET = "test-secret-key-that-is-long-enough-for-hs256"
TEST_PASSWORD = "Sup3r$ecretPass"


@pytest.fixture
def settings() -> Settings:
    """Settings with the default limits and a fixed signing key."""
    return Settings(
        environment="testing",
        secret_key=TEST_SECRET,
        max_owners=3,
        max_roles_per_user=10,
        require_email_confirmation=False,
    )


@pytest.fixture
def jwt(settings: Settings) -> JWTService:
    return JWTService(
        secret_key=settings.secret_key,
        issuer=settings.jwt_issuer,
        audience=settings.jwt_audience,
    )


@pytest.fixture
def lock() -> KeyedLock:
    return KeyedLock()


@pytest.fixture
def challenge_cache() -> InMemoryChallengeCache:
    return InMemoryChallengeCache()


@pytest.fixture
def snapshot() -> CatalogSnapshot:
    """Catalog with the built-in roles and two custom roles."""
    return CatalogSnapshot(
        definitions=DEFAULT_ROLE_DEFINITIONS,
        custom={
            "AUDITOR": ("Auditor", 10),
            "INTERN": ("Intern", 5),
        },
    )


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session seeded with the built-in roles.

    Uses an in-memory SQLite database for testing.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_factory() as session:
        await RoleSeeder(session).seed()

    async with session_factory() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


UserFactory = Callable[..., Awaitable[UserModel]]


@pytest.fixture
def make_user(db_session: AsyncSession) -> UserFactory:
    """Factory creating a committed user with optional roles and accounts.

    Accounts are given as names; the first one becomes the default.
    """

    async def _make_user(
        email: str | None = None,
        password: str = TEST_PASSWORD,
        roles: tuple[str, ...] = (),
        accounts: tuple[str, ...] = (),
        is_active: bool = True,
        email_confirmed: bool = True,
    ) -> UserModel:
        user = UserModel(
            id=str(uuid.uuid4()),
            email=email or f"user-{uuid.uuid4().hex[:8]}@example.com",
            password_hash=hash_password(password),
            first_name="Test",
            last_name="User",
            email_confirmed=email_confirmed,
            is_active=is_active,
        )
        db_session.add(user)
        await db_session.flush()

        for role_name in roles:
            role = await _get_role(db_session, role_name)
            db_session.add(UserRoleModel(user_id=user.id, role_id=role.id))

        for index, account_name in enumerate(accounts):
            db_session.add(
                UserAccountModel(
                    id=str(uuid.uuid4()),
                    user_id=user.id,
                    account_name=account_name,
                    is_active=True,
                    is_default=index == 0,
                    display_order=index,
                )
            )

        await db_session.commit()
        return user

    return _make_user


@pytest.fixture
def make_role(db_session: AsyncSession) -> Callable[..., Awaitable[RoleModel]]:
    """Factory creating a committed custom role."""

    async def _make_role(name: str, hierarchy_level: int = 10, is_active: bool = True) -> RoleModel:
        role = RoleModel(
            id=str(uuid.uuid4()),
            name=name,
            normalized_name=name.upper(),
            description=f"{name} role",
            hierarchy_level=hierarchy_level,
            is_system_role=False,
            is_active=is_active,
        )
        db_session.add(role)
        await db_session.commit()
        return role

    return _make_role


async def _get_role(session: AsyncSession, name: str) -> RoleModel:
    from rolegate.infrastructure.persistence.repositories import RoleRepository

    role = await RoleRepository(session).get_by_name(name)
    assert role is not None, f"role {name} is not seeded"
    return role


@pytest.fixture
def stored_refresh_tokens(db_session: AsyncSession) -> Callable[[str], Awaitable[list[RefreshTokenModel]]]:
    """Load every refresh token row of a user, oldest first."""

    async def _stored(user_id: str) -> list[RefreshTokenModel]:
        result = await db_session.execute(
            select(RefreshTokenModel)
            .where(RefreshTokenModel.user_id == user_id)
            .order_by(RefreshTokenModel.created_at)
        )
        return list(result.scalars().all())

    return _stored
