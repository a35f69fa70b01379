"""Typed results for role, credential and login operations.

Business failures are returned, not raised. Each operation yields a ``Result``
holding either a value or a ``Failure`` whose ``kind`` tells the caller which
class of problem occurred and whose ``code`` is a stable machine-readable
identifier.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class FailureKind(str, Enum):
    """Classes of failure surfaced to the calling layer."""

    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    BUSINESS_RULE_VIOLATION = "business_rule_violation"
    INVALID_CREDENTIAL = "invalid_credential"
    CHALLENGE_EXPIRED_OR_CONSUMED = "challenge_expired_or_consumed"
    INTERNAL = "internal"


class BusinessRule(str, Enum):
    """Stable codes for business rule violations."""

    ROLE_NAME_REQUIRED = "RoleNameRequired"
    ROLE_DESCRIPTION_REQUIRED = "RoleDescriptionRequired"
    SYSTEM_ROLE_NAME_RESERVED = "SystemRoleNameReserved"
    INVALID_ROLE_NAME = "InvalidRoleName"
    ROLE_NAME_NOT_UNIQUE = "RoleNameNotUnique"
    INVALID_HIERARCHY_LEVEL = "InvalidHierarchyLevel"
    ROLE_VALIDATION_FAILED = "RoleValidationFailed"
    SYSTEM_ROLE_NOT_MODIFIABLE = "SystemRoleNotModifiable"
    SYSTEM_ROLE_NOT_DELETABLE = "SystemRoleNotDeletable"
    ROLE_HAS_ASSIGNED_USERS = "RoleHasAssignedUsers"
    MAX_OWNERS_EXCEEDED = "MaxOwnersExceeded"
    ROLE_ALREADY_ASSIGNED = "RoleAlreadyAssigned"
    ROLE_NOT_ASSIGNED = "RoleNotAssigned"
    MAX_ROLES_PER_USER_EXCEEDED = "MaxRolesPerUserExceeded"
    EMAIL_ALREADY_REGISTERED = "EmailAlreadyRegistered"
    WEAK_PASSWORD = "WeakPassword"


@dataclass(frozen=True)
class Failure:
    """A typed failure.

    Attributes:
        kind: Failure class.
        code: Machine-readable code (a ``BusinessRule`` value for rule violations).
        message: Human-readable message.
    """

    kind: FailureKind
    code: str
    message: str

    @classmethod
    def unauthorized(cls, message: str, code: str = "Unauthorized") -> "Failure":
        return cls(FailureKind.UNAUTHORIZED, code, message)

    @classmethod
    def not_found(cls, message: str, code: str = "NotFound") -> "Failure":
        return cls(FailureKind.NOT_FOUND, code, message)

    @classmethod
    def rule(cls, rule: BusinessRule, message: str) -> "Failure":
        return cls(FailureKind.BUSINESS_RULE_VIOLATION, rule.value, message)

    @classmethod
    def invalid_credential(cls, message: str, code: str = "InvalidCredential") -> "Failure":
        return cls(FailureKind.INVALID_CREDENTIAL, code, message)

    @classmethod
    def challenge_expired_or_consumed(cls) -> "Failure":
        return cls(
            FailureKind.CHALLENGE_EXPIRED_OR_CONSUMED,
            "ChallengeExpiredOrConsumed",
            "Selection token is invalid, expired or already used. Please log in again.",
        )

    @classmethod
    def internal(cls, message: str = "An internal error occurred") -> "Failure":
        return cls(FailureKind.INTERNAL, "InternalError", message)


class FailureError(Exception):
    """Raised by ``Result.unwrap`` when the result holds a failure."""

    def __init__(self, failure: Failure) -> None:
        self.failure = failure
        super().__init__(f"{failure.code}: {failure.message}")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a successful value or a failure.

    Use ``Result.success`` / ``Result.fail`` to build instances and check
    ``ok`` before reading ``value``.
    """

    value: T | None = None
    failure: Failure | None = None

    @classmethod
    def success(cls, value: T | None = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, failure: Failure) -> "Result[T]":
        return cls(failure=failure)

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def kind(self) -> FailureKind | None:
        return self.failure.kind if self.failure else None

    @property
    def code(self) -> str | None:
        return self.failure.code if self.failure else None

    def unwrap(self) -> T:
        """Return the value or raise ``FailureError``."""
        if self.failure is not None:
            raise FailureError(self.failure)
        return self.value  # type: ignore[return-value]
