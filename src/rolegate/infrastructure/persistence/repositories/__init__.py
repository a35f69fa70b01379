"""Persistence repositories for database operations."""

from rolegate.infrastructure.persistence.repositories.refresh_token_repository import (
    RefreshTokenRepository,
)
from rolegate.infrastructure.persistence.repositories.role_repository import (
    RoleRepository,
)
from rolegate.infrastructure.persistence.repositories.user_account_repository import (
    UserAccountRepository,
)
from rolegate.infrastructure.persistence.repositories.user_repository import (
    UserRepository,
)
from rolegate.infrastructure.persistence.repositories.user_role_repository import (
    UserRoleRepository,
)

__all__ = [
    "RefreshTokenRepository",
    "RoleRepository",
    "UserAccountRepository",
    "UserRepository",
    "UserRoleRepository",
]
