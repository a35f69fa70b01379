"""SQLAlchemy model for the roles table.

Holds both the seeded system roles and custom roles created at runtime.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rolegate.infrastructure.persistence.database import Base


class RoleModel(Base):
    """SQLAlchemy model for the roles table.

    Attributes:
        id: Primary key (UUID string).
        name: Role name as entered.
        normalized_name: Upper-cased name, unique, used for lookups.
        description: Purpose of the role.
        hierarchy_level: Authority level (higher = more authority).
        is_system_role: Built-in roles cannot be modified or deleted.
        is_active: Inactive custom roles are ignored by the hierarchy.
    """

    __tablename__ = "roles"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    name: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Role name (e.g., 'Admin', 'Auditor')",
    )
    normalized_name: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        index=True,
    )
    description: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="",
    )
    hierarchy_level: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )
    is_system_role: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    assignments: Mapped[list["UserRoleModel"]] = relationship(  # noqa: F821
        "UserRoleModel",
        back_populates="role",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Role(id={self.id}, name={self.name}, level={self.hierarchy_level})>"
