"""Repository for user accounts."""

from datetime import datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.infrastructure.persistence.models import UserAccountModel


class UserAccountRepository:
    """Repository for user account database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def create(self, account: UserAccountModel) -> UserAccountModel:
        """Persist a new account."""
        self.session.add(account)
        await self.session.flush()
        return account

    async def get_by_id(self, account_id: str) -> UserAccountModel | None:
        """Get an active account by ID.

        Args:
            account_id: Account ID (UUID string).

        Returns:
            Account model if found and active, None otherwise.
        """
        result = await self.session.execute(
            select(UserAccountModel).where(
                UserAccountModel.id == account_id,
                UserAccountModel.is_active.is_(True),
            )
        )
        return result.scalar_one_or_none()

    async def list_active_for_user(self, user_id: str) -> list[UserAccountModel]:
        """List active accounts of a user in selection order.

        The default account comes first, then by display order and name.
        """
        result = await self.session.execute(
            select(UserAccountModel)
            .where(
                UserAccountModel.user_id == user_id,
                UserAccountModel.is_active.is_(True),
            )
            .order_by(
                UserAccountModel.is_default.desc(),
                UserAccountModel.display_order,
                UserAccountModel.account_name,
            )
        )
        return list(result.scalars().all())

    async def count_active_for_user(self, user_id: str) -> int:
        """Count the active accounts of a user."""
        result = await self.session.execute(
            select(func.count())
            .select_from(UserAccountModel)
            .where(
                UserAccountModel.user_id == user_id,
                UserAccountModel.is_active.is_(True),
            )
        )
        return result.scalar_one() or 0

    async def clear_default(self, user_id: str) -> None:
        """Remove the default flag from every account of a user."""
        await self.session.execute(
            update(UserAccountModel)
            .where(
                UserAccountModel.user_id == user_id,
                UserAccountModel.is_default.is_(True),
            )
            .values(is_default=False, updated_at=datetime.now(timezone.utc))
        )
        await self.session.flush()

    async def touch(self, account_id: str) -> None:
        """Record that the account was just selected."""
        now = datetime.now(timezone.utc)
        await self.session.execute(
            update(UserAccountModel)
            .where(UserAccountModel.id == account_id)
            .values(last_accessed_at=now, updated_at=now)
        )
        await self.session.flush()
