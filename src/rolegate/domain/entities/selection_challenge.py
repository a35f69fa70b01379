"""Selection challenge issued when a user must pick an account at login."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SelectionChallenge:
    """Short-lived, single-use proof that a user already passed the password check.

    Attributes:
        token: Random selection token handed to the client.
        user_id: The authenticated user.
        account_ids: Accounts the user may pick from.
        expires_at: Unix timestamp after which the challenge is void.
    """

    token: str
    user_id: str
    account_ids: tuple[str, ...]
    expires_at: float

    def allows(self, account_id: str) -> bool:
        """Check whether ``account_id`` was offered by this challenge."""
        return account_id in self.account_ids
