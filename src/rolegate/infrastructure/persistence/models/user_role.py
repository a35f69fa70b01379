"""SQLAlchemy model for the user_roles association table."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rolegate.infrastructure.persistence.database import Base


class UserRoleModel(Base):
    """Assignment of a role to a user (many-to-many)."""

    __tablename__ = "user_roles"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    role_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("roles.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    user: Mapped["UserModel"] = relationship(  # noqa: F821
        "UserModel",
        back_populates="role_assignments",
    )
    role: Mapped["RoleModel"] = relationship(  # noqa: F821
        "RoleModel",
        back_populates="assignments",
    )

    def __repr__(self) -> str:
        return f"<UserRole(user_id={self.user_id}, role_id={self.role_id})>"
