"""
Principal and role assignment database models.

Principals are provisioned by the identity provider; this service reads
them and lets their owners edit display fields.
"""

from typing import TYPE_CHECKING, Optional

from sqlalchemy import Enum, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from campus_exit.models.base import TimestampModel, UserRole, enum_values

if TYPE_CHECKING:
    from campus_exit.models.identity.profiles import (
        HallAdminRecord,
        SecurityRecord,
        StudentRecord,
        SuperAdminRecord,
    )

__all__ = ["Principal", "RoleAssignment"]


class Principal(TimestampModel):
    """An authenticated identity."""

    __tablename__ = "principals"

    full_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        comment="Display name"
    )
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="Login email"
    )

    role_assignment: Mapped[Optional["RoleAssignment"]] = relationship(
        "RoleAssignment",
        back_populates="principal",
        uselist=False,
        lazy="select"
    )
    student_record: Mapped[Optional["StudentRecord"]] = relationship(
        "StudentRecord", uselist=False, lazy="select", viewonly=True
    )
    hall_admin_record: Mapped[Optional["HallAdminRecord"]] = relationship(
        "HallAdminRecord", uselist=False, lazy="select", viewonly=True
    )
    security_record: Mapped[Optional["SecurityRecord"]] = relationship(
        "SecurityRecord", uselist=False, lazy="select", viewonly=True
    )
    super_admin_record: Mapped[Optional["SuperAdminRecord"]] = relationship(
        "SuperAdminRecord", uselist=False, lazy="select", viewonly=True
    )

    def __repr__(self) -> str:
        return f"<Principal(id={self.id}, email={self.email})>"


class RoleAssignment(TimestampModel):
    """Exactly one role per principal; absence means unassigned."""

    __tablename__ = "user_roles"
    __table_args__ = (
        Index("ix_user_roles_role", "role"),
    )

    principal_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("principals.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        comment="Principal holding the role"
    )
    role: Mapped[UserRole] = mapped_column(
        Enum(
            UserRole,
            name="user_role",
            native_enum=False,
            values_callable=enum_values,
            length=32,
        ),
        nullable=False,
        comment="Assigned role"
    )

    principal: Mapped["Principal"] = relationship(
        "Principal",
        back_populates="role_assignment",
        lazy="select"
    )

    def __repr__(self) -> str:
        return f"<RoleAssignment(principal_id={self.principal_id}, role={self.role.value})>"
