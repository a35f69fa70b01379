"""Mapping between SQLAlchemy models and domain entities."""

from rolegate.domain.entities import Account, RefreshToken, Role, User
from rolegate.infrastructure.persistence.models import (
    RefreshTokenModel,
    RoleModel,
    UserAccountModel,
    UserModel,
)


def role_to_entity(model: RoleModel) -> Role:
    return Role(
        id=model.id,
        name=model.name,
        hierarchy_level=model.hierarchy_level,
        description=model.description or "",
        is_system_role=model.is_system_role,
        is_active=model.is_active,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def user_to_entity(model: UserModel) -> User:
    return User(
        id=model.id,
        email=model.email,
        password_hash=model.password_hash,
        first_name=model.first_name,
        last_name=model.last_name,
        email_confirmed=model.email_confirmed,
        is_active=model.is_active,
        created_at=model.created_at,
        last_login=model.last_login,
    )


def account_to_entity(model: UserAccountModel) -> Account:
    return Account(
        id=model.id,
        user_id=model.user_id,
        account_name=model.account_name,
        description=model.description,
        is_active=model.is_active,
        is_default=model.is_default,
        display_order=model.display_order,
        last_accessed_at=model.last_accessed_at,
        created_at=model.created_at,
    )


def refresh_token_to_entity(model: RefreshTokenModel) -> RefreshToken:
    return RefreshToken(
        id=model.id,
        token_hash=model.token_hash,
        user_id=model.user_id,
        expires_at=model.expires_at,
        is_revoked=model.is_revoked,
        created_at=model.created_at,
        revoked_at=model.revoked_at,
    )
