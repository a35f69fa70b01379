"""Refresh token entity.

A refresh token is an opaque random value handed to the client once. Only its
SHA-256 hash is persisted. Tokens move from active to revoked (terminal) and
are implicitly expired once their expiry passes.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class RefreshToken:
    """Persisted refresh token record.

    Attributes:
        id: Unique identifier (UUID string).
        token_hash: SHA-256 hex digest of the raw token value.
        user_id: Owning user.
        expires_at: Expiry timestamp (timezone aware).
        is_revoked: Whether the token has been revoked.
        created_at: Issue timestamp.
        revoked_at: Revocation timestamp, if revoked.
    """

    id: str
    token_hash: str
    user_id: str
    expires_at: datetime
    is_revoked: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    revoked_at: datetime | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check whether the token has reached its expiry."""
        now = now or datetime.now(timezone.utc)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return now >= expires_at

    def is_active(self, now: datetime | None = None) -> bool:
        """Check whether the token is neither revoked nor expired."""
        return not self.is_revoked and not self.is_expired(now)
