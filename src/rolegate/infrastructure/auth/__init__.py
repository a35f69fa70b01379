"""Authentication infrastructure components.

Password hashing and access token signing.
"""

from rolegate.infrastructure.auth.jwt_service import (
    InvalidTokenError,
    JWTError,
    JWTService,
    TokenExpiredError,
    jwt_service,
)
from rolegate.infrastructure.auth.password_hasher import (
    hash_password,
    needs_rehash,
    verify_password,
)

__all__ = [
    "InvalidTokenError",
    "JWTError",
    "JWTService",
    "TokenExpiredError",
    "hash_password",
    "jwt_service",
    "needs_rehash",
    "verify_password",
]
