"""Integration tests for the login handshake and session lifecycle."""

from datetime import timedelta

import pytest
from argon2 import PasswordHasher

from rolegate.domain.results import BusinessRule, FailureKind
from rolegate.domain.services.auth_service import AuthService
from rolegate.domain.services.credential_service import CredentialService
from rolegate.domain.services.password_validator import PasswordValidator
from rolegate.domain.services.selection_challenge_cache import InMemoryChallengeCache
from rolegate.infrastructure.auth import JWTService, needs_rehash
from rolegate.infrastructure.persistence.repositories import (
    UserAccountRepository,
    UserRepository,
)

pytestmark = pytest.mark.integration

# Matches the default password of the make_user factory
TEST_PASSWORD = "Sup3r$ecretPass"


@pytest.fixture
def auth(db_session, settings, challenge_cache, jwt, lock):
    return AuthService(
        db_session,
        settings=settings,
        cache=challenge_cache,
        jwt=jwt,
        lock=lock,
        password_validator=PasswordValidator(min_length=settings.password_min_length),
    )


class TestLogin:
    """Tests for login with zero, one and several accounts."""

    @pytest.mark.asyncio
    async def test_unknown_email(self, auth):
        result = await auth.login("nobody@example.com", TEST_PASSWORD)

        assert result.kind == FailureKind.UNAUTHORIZED
        assert result.failure.message == "Invalid email or password."

    @pytest.mark.asyncio
    async def test_wrong_password_has_same_message(self, auth, make_user):
        await make_user(email="alice@example.com", accounts=("Work",))

        result = await auth.login("alice@example.com", "Wr0ng$password")

        assert result.kind == FailureKind.UNAUTHORIZED
        assert result.failure.message == "Invalid email or password."

    @pytest.mark.asyncio
    async def test_inactive_user(self, auth, make_user):
        await make_user(email="alice@example.com", is_active=False, accounts=("Work",))

        result = await auth.login("alice@example.com", TEST_PASSWORD)

        assert result.failure.message == "Invalid email or password."

    @pytest.mark.asyncio
    async def test_outdated_hash_is_upgraded(self, auth, db_session, make_user):
        user = await make_user(email="alice@example.com", accounts=("Work", "Home"))
        user.password_hash = PasswordHasher(time_cost=1, memory_cost=8192).hash(TEST_PASSWORD)
        await db_session.commit()
        old_hash = user.password_hash

        result = await auth.login("alice@example.com", TEST_PASSWORD)

        assert result.ok
        stored = await UserRepository(db_session).get_by_id(user.id)
        assert stored.password_hash != old_hash
        assert needs_rehash(stored.password_hash) is False

    @pytest.mark.asyncio
    async def test_unconfirmed_email_when_required(self, db_session, settings, challenge_cache, jwt, make_user):
        strict = settings.model_copy(update={"require_email_confirmation": True})
        auth = AuthService(db_session, settings=strict, cache=challenge_cache, jwt=jwt)
        await make_user(email="alice@example.com", email_confirmed=False, accounts=("Work",))

        result = await auth.login("alice@example.com", TEST_PASSWORD)

        assert result.code == "EmailNotConfirmed"

    @pytest.mark.asyncio
    async def test_email_lookup_ignores_case(self, auth, make_user):
        await make_user(email="alice@example.com", accounts=("Work",))

        result = await auth.login("Alice@Example.COM", TEST_PASSWORD)

        assert result.ok

    @pytest.mark.asyncio
    async def test_single_account_gets_session(self, auth, jwt, make_user):
        user = await make_user(email="alice@example.com", roles=("Support", "User"), accounts=("Work",))

        result = await auth.login("alice@example.com", TEST_PASSWORD)

        assert result.ok
        assert result.value.requires_account_selection is False
        session = result.value.session
        assert session.account.account_name == "Work"
        assert session.roles == ("Support", "User")
        assert session.token_type == "Bearer"
        assert session.expires_in == 15 * 60
        claims = jwt.validate_access_token(session.access_token)
        assert claims["sub"] == user.id
        assert claims["account_id"] == session.account.id
        assert claims["roles"] == ["Support", "User"]

    @pytest.mark.asyncio
    async def test_login_records_last_login(self, auth, db_session, make_user):
        user = await make_user(email="alice@example.com", accounts=("Work",))

        await auth.login("alice@example.com", TEST_PASSWORD)

        stored = await UserRepository(db_session).get_by_id(user.id)
        await db_session.refresh(stored)
        assert stored.last_login is not None

    @pytest.mark.asyncio
    async def test_zero_accounts_creates_default(self, auth, db_session, make_user):
        user = await make_user(email="alice@example.com")

        result = await auth.login("alice@example.com", TEST_PASSWORD)

        assert result.ok
        assert result.value.session.account.account_name == "Principal"
        assert result.value.session.account.is_default is True
        assert await UserAccountRepository(db_session).count_active_for_user(user.id) == 1

    @pytest.mark.asyncio
    async def test_two_accounts_require_selection(self, auth, make_user, stored_refresh_tokens):
        user = await make_user(email="alice@example.com", accounts=("Work", "Home"))

        result = await auth.login("alice@example.com", TEST_PASSWORD)

        assert result.ok
        outcome = result.value
        assert outcome.requires_account_selection is True
        assert outcome.session is None
        assert {a.account_name for a in outcome.selection.accounts} == {"Work", "Home"}
        assert len(outcome.selection.accounts) == 2
        assert outcome.selection.expires_in == 600
        # No credentials yet
        assert await stored_refresh_tokens(user.id) == []


class TestSelectAccount:
    """Tests for redeeming a selection challenge."""

    async def _login_with_two_accounts(self, auth, make_user):
        await make_user(email="alice@example.com", accounts=("Work", "Home"))
        result = await auth.login("alice@example.com", TEST_PASSWORD)
        return result.value.selection

    @pytest.mark.asyncio
    async def test_select_issues_scoped_session(self, auth, jwt, make_user):
        selection = await self._login_with_two_accounts(auth, make_user)
        home = [a for a in selection.accounts if a.account_name == "Home"][0]

        result = await auth.select_account(selection.selection_token, home.id)

        assert result.ok
        assert result.value.account.id == home.id
        assert jwt.validate_access_token(result.value.access_token)["account_id"] == home.id

    @pytest.mark.asyncio
    async def test_challenge_cannot_be_reused(self, auth, make_user):
        selection = await self._login_with_two_accounts(auth, make_user)
        account_id = selection.accounts[0].id

        first = await auth.select_account(selection.selection_token, account_id)
        second = await auth.select_account(selection.selection_token, account_id)

        assert first.ok
        assert second.kind == FailureKind.CHALLENGE_EXPIRED_OR_CONSUMED

    @pytest.mark.asyncio
    async def test_failed_selection_still_consumes_challenge(self, auth, make_user):
        selection = await self._login_with_two_accounts(auth, make_user)

        wrong = await auth.select_account(selection.selection_token, "not-offered")
        retry = await auth.select_account(selection.selection_token, selection.accounts[0].id)

        assert wrong.kind == FailureKind.UNAUTHORIZED
        assert wrong.failure.message == "Invalid account."
        assert retry.kind == FailureKind.CHALLENGE_EXPIRED_OR_CONSUMED

    @pytest.mark.asyncio
    async def test_account_of_another_user(self, auth, make_user):
        other = await make_user(accounts=("Other",))
        selection = await self._login_with_two_accounts(auth, make_user)
        other_accounts = await UserAccountRepository(auth.session).list_active_for_user(other.id)

        result = await auth.select_account(selection.selection_token, other_accounts[0].id)

        assert result.failure.message == "Invalid account."

    @pytest.mark.asyncio
    async def test_expired_challenge(self, db_session, settings, jwt, make_user):
        now = [1_000.0]
        auth = AuthService(db_session, settings=settings, cache=InMemoryChallengeCache(clock=lambda: now[0]), jwt=jwt)
        selection = await self._login_with_two_accounts(auth, make_user)
        now[0] += settings.selection_challenge_ttl_seconds

        result = await auth.select_account(selection.selection_token, selection.accounts[0].id)

        assert result.kind == FailureKind.CHALLENGE_EXPIRED_OR_CONSUMED

    @pytest.mark.asyncio
    async def test_abandoned_challenges_are_swept(self, db_session, settings, jwt, make_user):
        now = [1_000.0]
        cache = InMemoryChallengeCache(clock=lambda: now[0])
        auth = AuthService(db_session, settings=settings, cache=cache, jwt=jwt)
        await make_user(email="alice@example.com", accounts=("Work", "Home"))
        for _ in range(5):
            assert (await auth.login("alice@example.com", TEST_PASSWORD)).value.requires_account_selection
        now[0] += 3600

        await auth.login("alice@example.com", TEST_PASSWORD)

        assert cache.size() == 1

    @pytest.mark.asyncio
    async def test_unknown_token(self, auth):
        result = await auth.select_account("made-up", "acc")

        assert result.kind == FailureKind.CHALLENGE_EXPIRED_OR_CONSUMED


class TestRefreshAndLogout:
    """Tests for refresh and logout."""

    async def _session(self, auth, make_user):
        await make_user(email="alice@example.com", roles=("User",), accounts=("Work",))
        return (await auth.login("alice@example.com", TEST_PASSWORD)).value.session

    @pytest.mark.asyncio
    async def test_refresh_rotates_tokens(self, auth, jwt, make_user):
        session = await self._session(auth, make_user)

        result = await auth.refresh(session.access_token, session.refresh_token)

        assert result.ok
        assert result.value.refresh_token != session.refresh_token
        assert result.value.account.id == session.account.id
        assert jwt.validate_access_token(result.value.access_token)["account_id"] == session.account.id
        assert await auth.credentials.validate_refresh_token(session.refresh_token) is False
        assert await auth.credentials.validate_refresh_token(result.value.refresh_token) is True

    @pytest.mark.asyncio
    async def test_refresh_accepts_expired_access_token(self, auth, jwt, make_user):
        session = await self._session(auth, make_user)
        expired = jwt.create_access_token(
            session.user.id, session.user.email, [], expires_delta=timedelta(seconds=-30)
        )

        result = await auth.refresh(expired, session.refresh_token)

        assert result.ok
        assert result.value.account is None

    @pytest.mark.asyncio
    async def test_refresh_token_is_single_use(self, auth, make_user):
        session = await self._session(auth, make_user)
        await auth.refresh(session.access_token, session.refresh_token)

        result = await auth.refresh(session.access_token, session.refresh_token)

        assert result.kind == FailureKind.INVALID_CREDENTIAL
        assert result.failure.message == "Invalid refresh token."

    @pytest.mark.asyncio
    async def test_refresh_with_garbage_access_token(self, auth, make_user):
        session = await self._session(auth, make_user)

        result = await auth.refresh("garbage", session.refresh_token)

        assert result.kind == FailureKind.INVALID_CREDENTIAL
        assert result.failure.message == "Invalid access token."

    @pytest.mark.asyncio
    async def test_refresh_token_of_another_user(self, auth, jwt, make_user):
        session = await self._session(auth, make_user)
        mallory = await make_user(email="mallory@example.com")
        mallory_token = jwt.create_access_token(mallory.id, mallory.email, [])

        result = await auth.refresh(mallory_token, session.refresh_token)

        assert result.kind == FailureKind.UNAUTHORIZED
        assert result.failure.message == "Refresh token does not belong to this user."
        assert await auth.credentials.validate_refresh_token(session.refresh_token) is True

    @pytest.mark.asyncio
    async def test_relogin_revokes_previous_refresh_token(self, auth, make_user):
        first = await self._session(auth, make_user)

        second = (await auth.login("alice@example.com", TEST_PASSWORD)).value.session

        assert await auth.credentials.validate_refresh_token(first.refresh_token) is False
        assert await auth.credentials.validate_refresh_token(second.refresh_token) is True

    @pytest.mark.asyncio
    async def test_logout_revokes_everything(self, auth, make_user):
        session = await self._session(auth, make_user)

        result = await auth.logout(session.user.id, session.access_token)

        assert result.ok
        assert result.value == 1
        assert await auth.credentials.validate_refresh_token(session.refresh_token) is False
        refreshed = await auth.refresh(session.access_token, session.refresh_token)
        assert refreshed.kind == FailureKind.INVALID_CREDENTIAL

    @pytest.mark.asyncio
    async def test_logout_with_foreign_token(self, auth, jwt, make_user):
        session = await self._session(auth, make_user)
        other_token = jwt.create_access_token("someone-else", "x@example.com", [])

        result = await auth.logout(session.user.id, other_token)

        assert result.kind == FailureKind.UNAUTHORIZED
        assert await auth.credentials.validate_refresh_token(session.refresh_token) is True

    @pytest.mark.asyncio
    async def test_logout_with_forged_token(self, auth, settings, make_user):
        session = await self._session(auth, make_user)
        forger = JWTService(
            secret_key="another-secret-key-long-enough-for-hs256",
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
        )
        forged_token = forger.create_access_token(session.user.id, session.user.email, ["Owner"])

        result = await auth.logout(session.user.id, forged_token)

        assert result.kind == FailureKind.INVALID_CREDENTIAL
        assert result.failure.message == "Invalid access token."
        assert await auth.credentials.validate_refresh_token(session.refresh_token) is True


class TestRegister:
    """Tests for registration."""

    @pytest.mark.asyncio
    async def test_register_creates_user_role_and_account(self, auth, db_session):
        result = await auth.register("New@Example.com", TEST_PASSWORD, "New", "Person")

        assert result.ok
        outcome = result.value
        assert outcome.user.email == "new@example.com"
        assert outcome.session is not None
        assert outcome.session.roles == ("User",)
        assert outcome.session.account.account_name == "Principal"
        assert await CredentialService(db_session).validate_refresh_token(outcome.session.refresh_token)

    @pytest.mark.asyncio
    async def test_register_then_login(self, auth):
        await auth.register("new@example.com", TEST_PASSWORD)

        result = await auth.login("new@example.com", TEST_PASSWORD)

        assert result.ok
        assert result.value.session.account.account_name == "Principal"

    @pytest.mark.asyncio
    async def test_register_unconfirmed_has_no_session(self, auth):
        result = await auth.register("new@example.com", TEST_PASSWORD, email_confirmed=False)

        assert result.ok
        assert result.value.session is None
        assert result.value.user.email_confirmed is False

    @pytest.mark.asyncio
    async def test_duplicate_email(self, auth, make_user):
        await make_user(email="taken@example.com")

        result = await auth.register("TAKEN@example.com", TEST_PASSWORD)

        assert result.code == BusinessRule.EMAIL_ALREADY_REGISTERED.value

    @pytest.mark.asyncio
    async def test_weak_password(self, auth, db_session):
        result = await auth.register("new@example.com", "short")

        assert result.code == BusinessRule.WEAK_PASSWORD.value
        assert await UserRepository(db_session).email_exists("new@example.com") is False
