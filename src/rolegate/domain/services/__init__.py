"""Domain services for RoleGate.

Services contain the business logic for roles, credentials and login.
"""

from rolegate.domain.services.auth_service import (
    AccountSelection,
    AuthService,
    AuthSession,
    LoginOutcome,
    RegistrationOutcome,
)
from rolegate.domain.services.credential_service import CredentialService
from rolegate.domain.services.password_validator import (
    PasswordValidationError,
    PasswordValidator,
)
from rolegate.domain.services.role_authorization_service import RoleAuthorizationService
from rolegate.domain.services.role_catalog import (
    DEFAULT_ROLE_DEFINITIONS,
    CatalogSnapshot,
    RoleCatalog,
    RoleDefinitions,
    StaticRole,
)
from rolegate.domain.services.role_hierarchy_service import RoleHierarchyService
from rolegate.domain.services.role_management_service import RoleManagementService
from rolegate.domain.services.role_query_service import RoleQueryService
from rolegate.domain.services.role_validation_service import RoleValidationService
from rolegate.domain.services.selection_challenge_cache import (
    ChallengeCache,
    InMemoryChallengeCache,
)
from rolegate.domain.services.user_account_service import UserAccountService

__all__ = [
    "AccountSelection",
    "AuthService",
    "AuthSession",
    "CatalogSnapshot",
    "ChallengeCache",
    "CredentialService",
    "DEFAULT_ROLE_DEFINITIONS",
    "InMemoryChallengeCache",
    "LoginOutcome",
    "PasswordValidationError",
    "PasswordValidator",
    "RegistrationOutcome",
    "RoleAuthorizationService",
    "RoleCatalog",
    "RoleDefinitions",
    "RoleHierarchyService",
    "RoleManagementService",
    "RoleQueryService",
    "RoleValidationService",
    "StaticRole",
    "UserAccountService",
]
