"""
Base model configuration for SQLAlchemy ORM.

Declarative base plus the abstract id and timestamp bases every
table derives from.
"""

from datetime import datetime

from sqlalchemy import String
from sqlalchemy.orm import Mapped, declarative_base, mapped_column

from campus_exit.core.utils import generate_id, utc_now
from campus_exit.models.base.types import UTCDateTime

# Create declarative base
Base = declarative_base()


class BaseModel(Base):
    """
    Abstract base model with common fields and methods.

    Provides foundation for all database models with
    standard functionality and utilities.
    """

    __abstract__ = True

    # Primary key column - present in all models
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_id,
        nullable=False,
        comment="Primary key (UUID)"
    )

    def __repr__(self) -> str:
        """String representation of model instance."""
        return f"<{self.__class__.__name__}(id={getattr(self, 'id', None)})>"


class TimestampModel(BaseModel):
    """
    Base model with automatic timestamp tracking.

    Includes created_at and updated_at fields with
    automatic management.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utc_now,
        comment="Record creation timestamp"
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
        comment="Record last update timestamp"
    )
