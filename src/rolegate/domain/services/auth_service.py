"""Authentication service: login handshake, refresh, logout and registration.

A password-verified login with one active account (or none, in which case a
default account is created) gets credentials right away. With two or more
active accounts the user first receives a single-use selection challenge and
must pick an account with ``select_account``.
"""

import secrets
import time
import uuid
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.core.config import Settings, get_settings
from rolegate.core.locks import KeyedLock
from rolegate.core.logging import get_logger
from rolegate.domain.entities import Account, SelectionChallenge, User
from rolegate.domain.results import BusinessRule, Failure, Result
from rolegate.domain.services.credential_service import CredentialService
from rolegate.domain.services.password_validator import PasswordValidator
from rolegate.domain.services.role_catalog import DEFAULT_ROLE_DEFINITIONS, RoleDefinitions
from rolegate.domain.services.selection_challenge_cache import ChallengeCache, challenge_cache
from rolegate.domain.services.user_account_service import UserAccountService
from rolegate.infrastructure.auth import JWTService, hash_password, needs_rehash, verify_password
from rolegate.infrastructure.persistence.mappers import user_to_entity
from rolegate.infrastructure.persistence.models import UserModel
from rolegate.infrastructure.persistence.repositories import (
    RoleRepository,
    UserRepository,
    UserRoleRepository,
)

logger = get_logger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password."


@dataclass(frozen=True)
class AuthSession:
    """Credentials issued for an authenticated user.

    Attributes:
        user: The authenticated user.
        roles: Role names embedded in the access token.
        account: Account the session is scoped to, if any.
        access_token: Signed short-lived token.
        refresh_token: Raw refresh token, returned only once.
        expires_in: Access token lifetime in seconds.
    """

    user: User
    roles: tuple[str, ...]
    account: Account | None
    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "Bearer"


@dataclass(frozen=True)
class AccountSelection:
    """Selection challenge handed to a user with several accounts."""

    selection_token: str
    accounts: tuple[Account, ...]
    expires_in: int


@dataclass(frozen=True)
class LoginOutcome:
    """Either an issued session or a pending account selection."""

    session: AuthSession | None = None
    selection: AccountSelection | None = None

    @property
    def requires_account_selection(self) -> bool:
        return self.selection is not None


@dataclass(frozen=True)
class RegistrationOutcome:
    """A newly registered user, with a session unless email confirmation is required."""

    user: User
    session: AuthSession | None = None


class AuthService:
    """Multi-account login handshake and session lifecycle."""

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings | None = None,
        definitions: RoleDefinitions = DEFAULT_ROLE_DEFINITIONS,
        cache: ChallengeCache | None = None,
        jwt: JWTService | None = None,
        lock: KeyedLock | None = None,
        password_validator: PasswordValidator | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            session: SQLAlchemy async session.
            settings: Optional settings instance. Defaults to the cached settings.
            definitions: Built-in role table; new users get its base role.
            cache: Store for selection challenges. Defaults to the process-wide cache.
            jwt: Access token signer.
            lock: Lock registry serializing refresh token rotation.
            password_validator: Registration password policy.
        """
        self.session = session
        self.settings = settings or get_settings()
        self.definitions = definitions
        self.cache = cache if cache is not None else challenge_cache
        self.credentials = CredentialService(session, self.settings, jwt=jwt, lock=lock)
        self.accounts = UserAccountService(session, self.settings)
        self.password_validator = password_validator or PasswordValidator(
            min_length=self.settings.password_min_length
        )
        self.user_repo = UserRepository(session)
        self.role_repo = RoleRepository(session)
        self.user_role_repo = UserRoleRepository(session)

    async def _store_failure(self, error: SQLAlchemyError, action: str, **context: object) -> Result:
        await self.session.rollback()
        logger.error(f"Failed to {action}", error=str(error), **context)
        return Result.fail(Failure.internal())

    async def _issue_session(self, user: User, account: Account | None) -> AuthSession:
        roles = tuple(await self.user_role_repo.get_role_names_for_user(user.id))
        access_token = self.credentials.issue_access_token(
            user.id, user.email, roles, account_id=account.id if account else None
        )
        await self.user_repo.update_last_login(user.id)
        if account is not None:
            await self.accounts.mark_accessed(account.id)
        # Commits the pending updates together with the new refresh token
        refresh_token = await self.credentials.issue_refresh_token(user.id)
        return AuthSession(
            user=user,
            roles=roles,
            account=account,
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=self.credentials.access_token_expires_in,
        )

    async def login(self, email: str, password: str) -> Result[LoginOutcome]:
        """Authenticate with email and password.

        Args:
            email: Email address, any case.
            password: Plaintext password.

        Returns:
            Result holding either a session or an account selection.
        """
        logger.info("Login attempt")
        try:
            model = await self.user_repo.get_by_email(email)
            if model is None or not verify_password(password, model.password_hash):
                logger.warning("Login failed: invalid credentials")
                return Result.fail(Failure.unauthorized(INVALID_CREDENTIALS_MESSAGE))
            user = user_to_entity(model)
            if not user.is_active:
                logger.warning("Login failed: inactive user", user_id=user.id)
                return Result.fail(Failure.unauthorized(INVALID_CREDENTIALS_MESSAGE))
            if needs_rehash(model.password_hash):
                model.password_hash = hash_password(password)
                await self.session.commit()
                logger.info("Password hash upgraded", user_id=user.id)
            if self.settings.require_email_confirmation and not user.email_confirmed:
                logger.warning("Login failed: email not confirmed", user_id=user.id)
                return Result.fail(
                    Failure.unauthorized(
                        "Email address must be confirmed before logging in.",
                        code="EmailNotConfirmed",
                    )
                )

            accounts = await self.accounts.list_active_accounts(user.id)
            if not accounts:
                accounts = [await self.accounts.create_default_account(user.id)]
                logger.info("Default account created at login", user_id=user.id)

            if len(accounts) == 1:
                auth_session = await self._issue_session(user, accounts[0])
                logger.info("Login succeeded", user_id=user.id, account_id=accounts[0].id)
                return Result.success(LoginOutcome(session=auth_session))
        except SQLAlchemyError as e:
            return await self._store_failure(e, "log in")

        ttl = self.settings.selection_challenge_ttl_seconds
        challenge = SelectionChallenge(
            token=secrets.token_urlsafe(32),
            user_id=user.id,
            account_ids=tuple(a.id for a in accounts),
            expires_at=time.time() + ttl,
        )
        self.cache.set(challenge.token, challenge, ttl)
        logger.info("Account selection required", user_id=user.id, account_count=len(accounts))
        return Result.success(
            LoginOutcome(
                selection=AccountSelection(
                    selection_token=challenge.token,
                    accounts=tuple(accounts),
                    expires_in=ttl,
                )
            )
        )

    async def select_account(self, selection_token: str, account_id: str) -> Result[AuthSession]:
        """Redeem a selection challenge for credentials scoped to ``account_id``.

        The challenge is consumed before anything else is checked, so it
        cannot be reused whatever the outcome.
        """
        challenge = self.cache.pop(selection_token) if selection_token else None
        if challenge is None:
            logger.warning("Selection token invalid, expired or already used")
            return Result.fail(Failure.challenge_expired_or_consumed())
        if not challenge.allows(account_id):
            logger.warning("Account not offered by challenge", user_id=challenge.user_id, account_id=account_id)
            return Result.fail(Failure.unauthorized("Invalid account."))

        try:
            model = await self.user_repo.get_by_id(challenge.user_id)
            if model is None or not model.is_active:
                return Result.fail(Failure.unauthorized("User not found."))
            account = await self.accounts.get_account_for_user(model.id, account_id)
            if account is None:
                return Result.fail(Failure.unauthorized("Invalid account."))
            auth_session = await self._issue_session(user_to_entity(model), account)
        except SQLAlchemyError as e:
            return await self._store_failure(e, "select account", account_id=account_id)

        logger.info("Account selected", user_id=model.id, account_id=account.id)
        return Result.success(auth_session)

    async def refresh(self, access_token: str, refresh_token: str) -> Result[AuthSession]:
        """Exchange a refresh token and an access token of the same user for a new pair.

        The access token may be expired; its signature, issuer and audience must
        still be valid. The old refresh token is revoked.
        """
        try:
            if not await self.credentials.validate_refresh_token(refresh_token):
                logger.warning("Refresh rejected: invalid refresh token")
                return Result.fail(Failure.invalid_credential("Invalid refresh token."))

            claims = self.credentials.resolve_claims_from_token(access_token)
            user_id = claims.get("sub") if claims else None
            if not user_id:
                logger.warning("Refresh rejected: invalid access token")
                return Result.fail(Failure.invalid_credential("Invalid access token."))

            if await self.credentials.get_refresh_token_owner(refresh_token) != user_id:
                logger.warning("Refresh rejected: token pair belongs to different users", user_id=user_id)
                return Result.fail(Failure.unauthorized("Refresh token does not belong to this user."))

            model = await self.user_repo.get_by_id(user_id)
            if model is None or not model.is_active:
                return Result.fail(Failure.unauthorized("User not found."))

            new_refresh_token = await self.credentials.rotate_refresh_token(user_id, refresh_token)
            if new_refresh_token is None:
                # Spent by a concurrent refresh after the checks above
                logger.warning("Refresh rejected: token already rotated", user_id=user_id)
                return Result.fail(Failure.invalid_credential("Invalid refresh token."))

            user = user_to_entity(model)
            account = None
            if claims.get("account_id"):
                account = await self.accounts.get_account_for_user(user.id, claims["account_id"])
            roles = tuple(await self.user_role_repo.get_role_names_for_user(user.id))
        except SQLAlchemyError as e:
            return await self._store_failure(e, "refresh session")

        logger.info("Session refreshed", user_id=user.id)
        return Result.success(
            AuthSession(
                user=user,
                roles=roles,
                account=account,
                access_token=self.credentials.issue_access_token(
                    user.id, user.email, roles, account_id=account.id if account else None
                ),
                refresh_token=new_refresh_token,
                expires_in=self.credentials.access_token_expires_in,
            )
        )

    async def logout(self, user_id: str, access_token: str) -> Result[int]:
        """Revoke every refresh token of the user.

        Args:
            user_id: User logging out.
            access_token: Access token of that user; may be expired.

        Returns:
            Result holding the number of revoked tokens.
        """
        token_user_id = self.credentials.resolve_user_id_from_token(access_token)
        if token_user_id is None:
            logger.warning("Logout rejected: invalid access token", user_id=user_id)
            return Result.fail(Failure.invalid_credential("Invalid access token."))
        if token_user_id != user_id:
            logger.warning("Logout rejected: token does not belong to user", user_id=user_id)
            return Result.fail(Failure.unauthorized("Access token does not belong to this user."))
        try:
            count = await self.credentials.revoke_all_refresh_tokens(user_id)
        except SQLAlchemyError as e:
            return await self._store_failure(e, "log out", user_id=user_id)
        logger.info("User logged out", user_id=user_id, revoked_count=count)
        return Result.success(count)

    async def register(
        self,
        email: str,
        password: str,
        first_name: str = "",
        last_name: str = "",
        email_confirmed: bool | None = None,
    ) -> Result[RegistrationOutcome]:
        """Register a user with the base role and a default account.

        Args:
            email: Email address; stored lower-cased.
            password: Plaintext password, checked against the password policy.
            first_name: Given name.
            last_name: Family name.
            email_confirmed: Initial confirmation state. Defaults to confirmed
                unless email confirmation is required.

        Returns:
            Result holding the user and, when login is possible right away,
            a session scoped to the default account.
        """
        email = (email or "").strip().lower()
        logger.info("Registration attempt")

        weak = self.password_validator.check(password)
        if weak is not None:
            return Result.fail(weak)
        if email_confirmed is None:
            email_confirmed = not self.settings.require_email_confirmation

        try:
            if await self.user_repo.email_exists(email):
                logger.warning("Registration rejected: email already registered")
                return Result.fail(
                    Failure.rule(
                        BusinessRule.EMAIL_ALREADY_REGISTERED,
                        "A user with this email address already exists.",
                    )
                )
            base_role = await self.role_repo.get_by_name(self.definitions.base)
            if base_role is None:
                logger.error("Base role missing from role store", role_name=self.definitions.base)
                return Result.fail(Failure.internal("Role store has not been seeded"))

            model = await self.user_repo.create(
                UserModel(
                    id=str(uuid.uuid4()),
                    email=email,
                    password_hash=hash_password(password),
                    first_name=first_name.strip(),
                    last_name=last_name.strip(),
                    email_confirmed=email_confirmed,
                    is_active=True,
                )
            )
            await self.user_role_repo.add(model.id, base_role.id)
            account = await self.accounts.create_default_account(model.id)
            await self.session.commit()

            user = user_to_entity(model)
            logger.info("User registered", user_id=user.id)
            if not user.email_confirmed:
                return Result.success(RegistrationOutcome(user=user))
            auth_session = await self._issue_session(user, account)
        except IntegrityError:
            await self.session.rollback()
            logger.warning("Registration rejected: email registered concurrently")
            return Result.fail(
                Failure.rule(
                    BusinessRule.EMAIL_ALREADY_REGISTERED,
                    "A user with this email address already exists.",
                )
            )
        except SQLAlchemyError as e:
            return await self._store_failure(e, "register user")

        return Result.success(RegistrationOutcome(user=user, session=auth_session))
