"""
Role-specific profile records.

One table per role, keyed by principal. Only the fields a role legitimately
has are stored on its table.
"""

from typing import TYPE_CHECKING, Optional

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from campus_exit.models.base import TimestampModel

if TYPE_CHECKING:
    from campus_exit.models.identity.hall import Hall

__all__ = [
    "StudentRecord",
    "HallAdminRecord",
    "SecurityRecord",
    "SuperAdminRecord",
]


def _principal_fk() -> Mapped[str]:
    return mapped_column(
        String(36),
        ForeignKey("principals.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        comment="Owning principal"
    )


class StudentRecord(TimestampModel):
    """Student profile: matriculation number, phone and hall."""

    __tablename__ = "students"

    principal_id: Mapped[str] = _principal_fk()
    student_number: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        comment="Institution-issued student identifier"
    )
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    hall_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("halls.id", ondelete="SET NULL"),
        nullable=True,
        comment="Hall of residence"
    )

    hall: Mapped[Optional["Hall"]] = relationship("Hall", lazy="joined")


class HallAdminRecord(TimestampModel):
    """Hall administrator profile; hall is fixed once assigned."""

    __tablename__ = "hall_admins"

    principal_id: Mapped[str] = _principal_fk()
    staff_number: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        comment="Staff identifier"
    )
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    hall_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("halls.id", ondelete="SET NULL"),
        nullable=True,
        comment="Administered hall"
    )

    hall: Mapped[Optional["Hall"]] = relationship("Hall", lazy="joined")


class SecurityRecord(TimestampModel):
    """Gate officer profile."""

    __tablename__ = "security_personnel"

    principal_id: Mapped[str] = _principal_fk()
    badge_number: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        comment="Security badge identifier"
    )
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)


class SuperAdminRecord(TimestampModel):
    """Oversight profile; carries no hall and no role-local id."""

    __tablename__ = "super_admins"

    principal_id: Mapped[str] = _principal_fk()
