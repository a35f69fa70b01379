"""SQLAlchemy models for RoleGate tables.

All models inherit from the Base class defined in database.py.
"""

from rolegate.infrastructure.persistence.models.refresh_token import RefreshTokenModel
from rolegate.infrastructure.persistence.models.role import RoleModel
from rolegate.infrastructure.persistence.models.user import UserModel
from rolegate.infrastructure.persistence.models.user_account import UserAccountModel
from rolegate.infrastructure.persistence.models.user_role import UserRoleModel

__all__ = [
    "RefreshTokenModel",
    "RoleModel",
    "UserAccountModel",
    "UserModel",
    "UserRoleModel",
]
