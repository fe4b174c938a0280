"""
Hall database model.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from campus_exit.models.base import TimestampModel

__all__ = ["Hall"]


class Hall(TimestampModel):
    """A named physical residence unit."""

    __tablename__ = "halls"

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        unique=True,
        comment="Hall name"
    )

    def __repr__(self) -> str:
        return f"<Hall(id={self.id}, name={self.name})>"
