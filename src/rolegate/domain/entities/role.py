"""Role entity for hierarchical authorization.

Roles are global. Five built-in system roles form the fixed top of the
hierarchy; custom roles are created below the base 'User' role.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class Role:
    """Role entity for user authorization.

    Attributes:
        id: Unique identifier (UUID string).
        name: Role name, unique ignoring case (e.g., 'Admin', 'Auditor').
        hierarchy_level: Authority level, higher means more authority.
        description: Human readable purpose of the role.
        is_system_role: True for the built-in roles, which are immutable.
        is_active: Inactive custom roles are treated as unknown.
        created_at: Timestamp when the role was created.
        updated_at: Timestamp of the last modification, if any.
    """

    id: str
    name: str
    hierarchy_level: int
    description: str = ""
    is_system_role: bool = False
    is_active: bool = True
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        """Validate role data after initialization."""
        if not self.name:
            raise ValueError("Role name is required")
        if self.hierarchy_level < 0:
            raise ValueError("Hierarchy level must not be negative")

    @property
    def normalized_name(self) -> str:
        """Upper-cased name used for case-insensitive lookups."""
        return self.name.upper()
