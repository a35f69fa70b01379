"""Password strength policy applied at registration."""

import re
from dataclasses import dataclass

from rolegate.core.config import get_settings
from rolegate.domain.results import BusinessRule, Failure


@dataclass(frozen=True)
class PasswordValidationError:
    """A violated password rule.

    Attributes:
        message: Human-readable error message.
        code: Machine-readable error code.
    """

    message: str
    code: str


class PasswordValidator:
    """Validates password strength.

    Default policy: the configured minimum length plus at least one uppercase
    letter, one lowercase letter, one digit and one special character.
    """

    SPECIAL_CHARS = r"!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>\/?`~"

    def __init__(
        self,
        min_length: int | None = None,
        require_uppercase: bool = True,
        require_lowercase: bool = True,
        require_digit: bool = True,
        require_special: bool = True,
    ) -> None:
        """Initialize the validator.

        Args:
            min_length: Minimum password length. Defaults to the configured value.
            require_uppercase: Require at least one uppercase letter.
            require_lowercase: Require at least one lowercase letter.
            require_digit: Require at least one digit.
            require_special: Require at least one special character.
        """
        self.min_length = min_length if min_length is not None else get_settings().password_min_length
        self._rules: list[tuple[str, str, str]] = []
        if require_uppercase:
            self._rules.append((r"[A-Z]", "one uppercase letter", "password_no_uppercase"))
        if require_lowercase:
            self._rules.append((r"[a-z]", "one lowercase letter", "password_no_lowercase"))
        if require_digit:
            self._rules.append((r"\d", "one digit", "password_no_digit"))
        if require_special:
            self._rules.append((f"[{self.SPECIAL_CHARS}]", "one special character", "password_no_special"))

    def validate(self, password: str) -> list[PasswordValidationError]:
        """Validate a password against the policy.

        Args:
            password: The password to validate.

        Returns:
            List of violated rules. Empty if the password is acceptable.
        """
        errors: list[PasswordValidationError] = []
        if len(password) < self.min_length:
            errors.append(
                PasswordValidationError(
                    message=f"Password must be at least {self.min_length} characters",
                    code="password_too_short",
                )
            )
        for pattern, requirement, code in self._rules:
            if not re.search(pattern, password):
                errors.append(
                    PasswordValidationError(
                        message=f"Password must contain at least {requirement}",
                        code=code,
                    )
                )
        return errors

    def is_valid(self, password: str) -> bool:
        return not self.validate(password)

    def check(self, password: str) -> Failure | None:
        """Get a ``WeakPassword`` failure listing every violated rule, or None."""
        errors = self.validate(password)
        if not errors:
            return None
        return Failure.rule(BusinessRule.WEAK_PASSWORD, "; ".join(e.message for e in errors))
