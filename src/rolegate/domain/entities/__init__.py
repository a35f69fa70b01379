"""Domain entities for RoleGate.

Entities are pure Python dataclasses that represent core business concepts.
They have no dependencies on infrastructure or external frameworks.
"""

from rolegate.domain.entities.account import Account
from rolegate.domain.entities.refresh_token import RefreshToken
from rolegate.domain.entities.role import Role
from rolegate.domain.entities.selection_challenge import SelectionChallenge
from rolegate.domain.entities.user import User

__all__ = [
    "Account",
    "RefreshToken",
    "Role",
    "SelectionChallenge",
    "User",
]
