"""Configuration management for RoleGate.

This module uses Pydantic Settings to load and validate configuration from
environment variables and .env files. Configuration is loaded at application
startup and is immutable during runtime.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration settings.

    Settings are loaded from environment variables and .env files.
    All configuration values are validated at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ROLEGATE_",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Application Settings
    app_name: str = "RoleGate"
    app_version: str = "0.1.0"
    environment: Literal["development", "production", "testing"] = "development"

    # Database Settings
    database_url: str = "sqlite+aiosqlite:///./rg_data/rolegate.db"
    db_echo: bool = False

    # Token Settings
    secret_key: str = Field(
        default="change-me-in-production-use-openssl-rand-hex-32",
        description="Symmetric key for access token signing",
    )
    jwt_issuer: str = "rolegate"
    jwt_audience: str = "rolegate-clients"
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 7
    refresh_token_bytes: int = 64

    # Login Handshake Settings
    selection_challenge_ttl_seconds: int = 600  # 10 minutes
    require_email_confirmation: bool = False
    default_account_name: str = "Principal"

    # Role Rules
    max_owners: int = Field(default=3, ge=1, le=10)
    max_roles_per_user: int = Field(default=10, ge=1)
    role_name_min_length: int = Field(default=2, ge=1)
    role_name_max_length: int = 50

    # Password Policy
    password_min_length: int = 12

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    @model_validator(mode="after")
    def validate_role_name_bounds(self) -> "Settings":
        """Validate that the role name length bounds are consistent."""
        if self.role_name_max_length < self.role_name_min_length:
            raise ValueError(
                "role_name_max_length must be greater than or equal to "
                f"role_name_min_length ({self.role_name_min_length})"
            )
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == "testing"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    This function caches the settings instance to avoid reloading
    configuration on every call. Settings are loaded once at startup.

    Returns:
        Settings: Cached application settings instance.
    """
    return Settings()
