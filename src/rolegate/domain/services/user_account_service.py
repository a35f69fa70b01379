"""User account service.

Keeps at most one default account per user. Mutations flush but do not
commit; the calling use-case owns the transaction.
"""

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.core.config import Settings, get_settings
from rolegate.core.logging import get_logger
from rolegate.domain.entities import Account
from rolegate.domain.results import Failure, Result
from rolegate.infrastructure.persistence.mappers import account_to_entity
from rolegate.infrastructure.persistence.models import UserAccountModel
from rolegate.infrastructure.persistence.repositories import UserAccountRepository

logger = get_logger(__name__)


class UserAccountService:
    """Service for the accounts a user can log in to."""

    def __init__(self, session: AsyncSession, settings: Settings | None = None) -> None:
        """Initialize the service.

        Args:
            session: SQLAlchemy async session.
            settings: Optional settings instance. Defaults to the cached settings.
        """
        self.session = session
        self.settings = settings or get_settings()
        self.account_repo = UserAccountRepository(session)

    async def list_active_accounts(self, user_id: str) -> list[Account]:
        """List active accounts, default first, then by display order and name."""
        models = await self.account_repo.list_active_for_user(user_id)
        return [account_to_entity(m) for m in models]

    async def get_account_for_user(self, user_id: str, account_id: str) -> Account | None:
        """Get an active account only if it belongs to ``user_id``."""
        model = await self.account_repo.get_by_id(account_id)
        if model is None or model.user_id != user_id:
            return None
        return account_to_entity(model)

    async def create_account(
        self,
        user_id: str,
        account_name: str,
        description: str | None = None,
        is_default: bool = False,
        display_order: int = 0,
    ) -> Account:
        """Create an account for a user.

        The user's first active account always becomes the default. Making a
        new account the default clears the flag on the others.

        Args:
            user_id: Owning user.
            account_name: Display name.
            description: Optional purpose.
            is_default: Whether the new account should be the default.
            display_order: Ordering hint for account selection.

        Returns:
            The created account.
        """
        account = Account(
            id=str(uuid.uuid4()),
            user_id=user_id,
            account_name=account_name.strip(),
            description=description,
            is_default=is_default,
            display_order=display_order,
        )
        if await self.account_repo.count_active_for_user(user_id) == 0:
            account.is_default = True
        if account.is_default:
            await self.account_repo.clear_default(user_id)

        model = await self.account_repo.create(
            UserAccountModel(
                id=account.id,
                user_id=account.user_id,
                account_name=account.account_name,
                description=account.description,
                is_active=True,
                is_default=account.is_default,
                display_order=account.display_order,
            )
        )
        logger.info("Account created", user_id=user_id, account_id=model.id, is_default=model.is_default)
        return account_to_entity(model)

    async def create_default_account(self, user_id: str) -> Account:
        """Create the user's default account with the configured name."""
        return await self.create_account(
            user_id,
            self.settings.default_account_name,
            description="Default account",
            is_default=True,
        )

    async def set_default_account(self, user_id: str, account_id: str) -> Result[Account]:
        """Make one of the user's accounts the default.

        Returns:
            Result holding the new default account, or NotFound.
        """
        model = await self.account_repo.get_by_id(account_id)
        if model is None or model.user_id != user_id:
            return Result.fail(Failure.not_found(f"Account with ID {account_id} not found"))
        await self.account_repo.clear_default(user_id)
        model.is_default = True
        await self.session.flush()
        return Result.success(account_to_entity(model))

    async def mark_accessed(self, account_id: str) -> None:
        await self.account_repo.touch(account_id)
