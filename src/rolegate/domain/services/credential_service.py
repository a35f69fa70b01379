"""Credential lifecycle: access token issuance and refresh token rotation.

Refresh tokens follow a single-active-chain policy. Issuing a new one revokes
every active token of the user first, in the same transaction, while holding a
per-user lock. Revocation is terminal; expiry is implicit and read-only.
"""

import secrets
import uuid
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.core.config import Settings, get_settings
from rolegate.core.locks import KeyedLock
from rolegate.core.logging import get_logger
from rolegate.infrastructure.auth import JWTError, JWTService, jwt_service
from rolegate.infrastructure.persistence.mappers import refresh_token_to_entity
from rolegate.infrastructure.persistence.models import RefreshTokenModel
from rolegate.infrastructure.persistence.repositories import RefreshTokenRepository

logger = get_logger(__name__)

# Shared by every service instance in the process
refresh_rotation_lock = KeyedLock()


class CredentialService:
    """Issues access tokens and manages refresh tokens."""

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings | None = None,
        jwt: JWTService | None = None,
        lock: KeyedLock | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            session: SQLAlchemy async session.
            settings: Optional settings instance. Defaults to the cached settings.
            jwt: Access token signer. Defaults to the module-level service.
            lock: Lock registry serializing rotation per user.
        """
        self.session = session
        self.settings = settings or get_settings()
        self.jwt = jwt or jwt_service
        self.lock = lock or refresh_rotation_lock
        self.token_repo = RefreshTokenRepository(session)

    @property
    def access_token_expires_in(self) -> int:
        """Access token lifetime in seconds."""
        return self.jwt.get_expires_in(timedelta(minutes=self.settings.access_token_expire_minutes))

    def issue_access_token(
        self,
        user_id: str,
        email: str,
        roles: Iterable[str],
        account_id: str | None = None,
    ) -> str:
        """Sign a short-lived access token. No I/O.

        Args:
            user_id: Subject of the token.
            email: User's email address.
            roles: Role names to embed.
            account_id: Account the session is scoped to, if any.

        Returns:
            Encoded access token.
        """
        return self.jwt.create_access_token(
            user_id=user_id,
            email=email,
            roles=list(roles),
            account_id=account_id,
            expires_delta=timedelta(minutes=self.settings.access_token_expire_minutes),
        )

    async def issue_refresh_token(self, user_id: str) -> str:
        """Issue a new refresh token, revoking every active one of the user.

        The caller receives the raw value; only its hash is stored.

        Args:
            user_id: Owner of the token.

        Returns:
            Raw refresh token value.

        Raises:
            SQLAlchemyError: If the store fails. The session is rolled back.
        """
        token = secrets.token_urlsafe(self.settings.refresh_token_bytes)
        expires_at = datetime.now(timezone.utc) + timedelta(days=self.settings.refresh_token_expire_days)

        async with self.lock.hold(f"refresh:{user_id}"):
            try:
                revoked = await self.token_repo.revoke_all_for_user(user_id)
                await self.token_repo.create(
                    RefreshTokenModel(
                        id=str(uuid.uuid4()),
                        token_hash=RefreshTokenRepository.hash_token(token),
                        user_id=user_id,
                        expires_at=expires_at,
                        is_revoked=False,
                    )
                )
                await self.session.commit()
            except Exception:
                await self.session.rollback()
                raise

        logger.info("Refresh token issued", user_id=user_id, revoked_count=revoked)
        return token

    async def rotate_refresh_token(self, user_id: str, current_token: str) -> str | None:
        """Exchange an active refresh token of ``user_id`` for a new one.

        The check and the rotation happen under the user's lock, so a token can
        be exchanged at most once.

        Args:
            user_id: Expected owner of ``current_token``.
            current_token: Raw refresh token presented by the client.

        Returns:
            The new raw token, or None if ``current_token`` is not an active
            token of ``user_id``.
        """
        token = secrets.token_urlsafe(self.settings.refresh_token_bytes)
        expires_at = datetime.now(timezone.utc) + timedelta(days=self.settings.refresh_token_expire_days)

        async with self.lock.hold(f"refresh:{user_id}"):
            try:
                current = await self.token_repo.get_by_token(current_token)
                if (
                    current is None
                    or current.user_id != user_id
                    or not refresh_token_to_entity(current).is_active()
                ):
                    return None
                await self.token_repo.revoke_all_for_user(user_id)
                await self.token_repo.create(
                    RefreshTokenModel(
                        id=str(uuid.uuid4()),
                        token_hash=RefreshTokenRepository.hash_token(token),
                        user_id=user_id,
                        expires_at=expires_at,
                        is_revoked=False,
                    )
                )
                await self.session.commit()
            except Exception:
                await self.session.rollback()
                raise

        logger.info("Refresh token rotated", user_id=user_id)
        return token

    async def validate_refresh_token(self, token: str) -> bool:
        """Check that a stored, unrevoked and unexpired token matches ``token``."""
        if not token:
            return False
        model = await self.token_repo.get_by_token(token)
        if model is None:
            return False
        return refresh_token_to_entity(model).is_active()

    async def get_refresh_token_owner(self, token: str) -> str | None:
        """Get the user ID of a stored refresh token, active or not."""
        if not token:
            return None
        model = await self.token_repo.get_by_token(token)
        return model.user_id if model else None

    async def revoke_refresh_token(self, token: str) -> None:
        """Revoke one refresh token. Unknown or already revoked tokens are a no-op."""
        model = await self.token_repo.get_by_token(token) if token else None
        if model is None or model.is_revoked:
            return
        try:
            await self.token_repo.revoke(model.id)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        logger.info("Refresh token revoked", user_id=model.user_id)

    async def revoke_all_refresh_tokens(self, user_id: str) -> int:
        """Revoke every active refresh token of a user without issuing a new one.

        Returns:
            Number of tokens revoked.
        """
        async with self.lock.hold(f"refresh:{user_id}"):
            try:
                count = await self.token_repo.revoke_all_for_user(user_id)
                await self.session.commit()
            except Exception:
                await self.session.rollback()
                raise
        logger.info("Refresh tokens revoked", user_id=user_id, revoked_count=count)
        return count

    def resolve_claims_from_token(self, access_token: str) -> dict[str, Any] | None:
        """Decode an access token, ignoring its expiry.

        Signature, issuer and audience are verified. Any failure yields None.
        """
        if not access_token:
            return None
        try:
            return self.jwt.validate_access_token(access_token, verify_exp=False)
        except JWTError as e:
            logger.debug("Access token rejected", error=str(e))
            return None

    def resolve_user_id_from_token(self, access_token: str) -> str | None:
        """Get the subject of an access token, ignoring its expiry."""
        claims = self.resolve_claims_from_token(access_token)
        if claims is None:
            return None
        return claims.get("sub") or None
