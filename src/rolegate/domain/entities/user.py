"""User entity for authentication.

A user is an email identity with a password. Roles are attached to the user
and accounts hang off it.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class User:
    """User identity.

    Attributes:
        id: Unique identifier (UUID string).
        email: Email address, unique ignoring case.
        password_hash: Argon2 hash (never store plaintext).
        first_name: Given name.
        last_name: Family name.
        email_confirmed: Whether the email address has been confirmed.
        is_active: Whether the user can log in.
        created_at: Timestamp when the user was created.
        last_login: Timestamp of last successful login (nullable).
    """

    id: str
    email: str
    password_hash: str
    first_name: str = ""
    last_name: str = ""
    email_confirmed: bool = False
    is_active: bool = True
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    last_login: datetime | None = None

    def __post_init__(self) -> None:
        """Validate user data after initialization."""
        if not self.id:
            raise ValueError("User ID is required")
        if not self.email:
            raise ValueError("Email is required")
        if not self.password_hash:
            raise ValueError("Password hash is required")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
