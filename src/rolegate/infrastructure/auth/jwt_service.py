"""JWT token service.

Provides signed access token creation and validation. Refresh tokens are
opaque random values and never JWTs, see CredentialService.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from rolegate.core.config import get_settings


class JWTError(Exception):
    """Base exception for JWT-related errors."""

    pass


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(JWTError):
    """Raised when a token is invalid."""

    pass


class JWTService:
    """Service for creating and validating access tokens.

    Tokens are HS256 signed and carry issuer and audience claims.
    """

    ALGORITHM = "HS256"

    def __init__(
        self,
        secret_key: str | None = None,
        issuer: str | None = None,
        audience: str | None = None,
    ) -> None:
        """Initialize the JWT service.

        Args:
            secret_key: Secret key for signing tokens. If not provided,
                        uses the configured secret key from settings.
            issuer: Issuer claim. Defaults to the configured issuer.
            audience: Audience claim. Defaults to the configured audience.
        """
        self._secret_key = secret_key
        self._issuer = issuer
        self._audience = audience

    @property
    def secret_key(self) -> str:
        """Get the secret key for signing tokens."""
        if self._secret_key:
            return self._secret_key
        return get_settings().secret_key

    @property
    def issuer(self) -> str:
        return self._issuer or get_settings().jwt_issuer

    @property
    def audience(self) -> str:
        return self._audience or get_settings().jwt_audience

    def create_access_token(
        self,
        user_id: str,
        email: str,
        roles: list[str],
        account_id: str | None = None,
        expires_delta: timedelta | None = None,
    ) -> str:
        """Create an access token.

        Args:
            user_id: The user's unique identifier.
            email: The user's email address.
            roles: Names of the roles the user holds.
            account_id: The account the session is scoped to, if any.
            expires_delta: Custom expiration time. Defaults to config value.

        Returns:
            Encoded JWT access token.
        """
        if expires_delta is None:
            expires_delta = timedelta(minutes=get_settings().access_token_expire_minutes)

        now = datetime.now(timezone.utc)
        payload = {
            "iss": self.issuer,
            "aud": self.audience,
            "sub": user_id,
            "iat": now,
            "exp": now + expires_delta,
            "jti": str(uuid.uuid4()),
            "email": email,
            "roles": list(roles),
            "account_id": account_id,
            "type": "access",
        }

        return jwt.encode(payload, self.secret_key, algorithm=self.ALGORITHM)

    def decode_token(self, token: str, verify_exp: bool = True) -> dict[str, Any]:
        """Decode and validate a JWT token.

        Args:
            token: The encoded JWT token.
            verify_exp: Whether to reject expired tokens. Signature, issuer
                and audience are always verified.

        Returns:
            Decoded token payload.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the token is invalid.
        """
        try:
            return jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.ALGORITHM],
                issuer=self.issuer,
                audience=self.audience,
                options={"verify_exp": verify_exp, "require": ["sub", "iss", "aud"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError("Invalid token") from e

    def validate_access_token(self, token: str, verify_exp: bool = True) -> dict[str, Any]:
        """Validate that a token is an access token and decode it.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the token is invalid or not an access token.
        """
        payload = self.decode_token(token, verify_exp=verify_exp)
        if payload.get("type") != "access":
            raise InvalidTokenError("Not an access token")
        return payload

    def get_expires_in(self, expires_delta: timedelta | None = None) -> int:
        """Get the access token lifetime in seconds."""
        if expires_delta is None:
            expires_delta = timedelta(minutes=get_settings().access_token_expire_minutes)
        return int(expires_delta.total_seconds())


# Default JWT service instance
jwt_service = JWTService()
