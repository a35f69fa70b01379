"""User account entity.

One user identity (email) can own several accounts, each acting as a separate
profile. Logging in with more than one active account requires choosing one.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class Account:
    """Account owned by a single user.

    Attributes:
        id: Unique identifier (UUID string).
        user_id: Owning user.
        account_name: Display name for the account.
        description: Optional purpose of the account.
        is_active: Inactive accounts are not offered at login.
        is_default: At most one account per user carries this flag.
        display_order: Ordering hint for account selection.
        last_accessed_at: Last time the account was selected at login.
        created_at: Timestamp when the account was created.
    """

    id: str
    user_id: str
    account_name: str
    description: str | None = None
    is_active: bool = True
    is_default: bool = False
    display_order: int = 0
    last_accessed_at: datetime | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        """Validate account data after initialization."""
        if not self.user_id:
            raise ValueError("User ID is required")
        if not self.account_name:
            raise ValueError("Account name is required")
        if len(self.account_name) > 100:
            raise ValueError("Account name must be at most 100 characters")
