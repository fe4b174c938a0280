"""
Exit request database models.

Provides SQLAlchemy models for campus exit requests and their
status history.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    CheckConstraint,
    Enum,
    ForeignKey,
    Index,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from campus_exit.models.base import (
    ACTIVE_STATUSES,
    BaseModel,
    ExitRequestStatus,
    GATE_USABLE_STATUSES,
    TimestampModel,
    UTCDateTime,
    enum_values,
)
from campus_exit.core.utils import utc_now

if TYPE_CHECKING:
    from campus_exit.models.identity.hall import Hall
    from campus_exit.models.identity.principal import Principal

__all__ = [
    "ExitRequest",
    "ExitRequestStatusHistory",
    "status_column_type",
]

REASON_MAX_LENGTH = 200
DESTINATION_MAX_LENGTH = 100
COMMENT_MAX_LENGTH = 500

# Partial-index predicate; must list exactly the active statuses
_ACTIVE_PREDICATE = "status IN ({})".format(
    ", ".join(f"'{status.value}'" for status in sorted(ACTIVE_STATUSES, key=lambda s: s.value))
)


def status_column_type() -> Enum:
    return Enum(
        ExitRequestStatus,
        name="exit_request_status",
        native_enum=False,
        values_callable=enum_values,
        length=16,
    )


class ExitRequest(TimestampModel):
    """
    Campus exit request.

    Moves pending -> approved|declined, approved -> exited,
    exited -> returned. Reviewer fields are written together by review only;
    the pass credential is issued once, on approval.
    """

    __tablename__ = "exit_requests"
    __table_args__ = (
        CheckConstraint(
            "(reviewed_by IS NULL AND reviewed_at IS NULL) OR "
            "(reviewed_by IS NOT NULL AND reviewed_at IS NOT NULL)",
            name="ck_exit_requests_review_fields_together"
        ),
        # One active request per requester
        Index(
            "uq_exit_requests_one_active_per_requester",
            "requester_id",
            unique=True,
            sqlite_where=text(_ACTIVE_PREDICATE),
            postgresql_where=text(_ACTIVE_PREDICATE),
        ),
        Index("ix_exit_requests_requester_id", "requester_id"),
        Index("ix_exit_requests_status", "status"),
        Index("ix_exit_requests_hall_status", "hall_id", "status"),
        Index("ix_exit_requests_status_updated", "status", "updated_at"),
    )

    requester_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("principals.id", ondelete="CASCADE"),
        nullable=False,
        comment="Student requesting to leave campus"
    )
    hall_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("halls.id", ondelete="SET NULL"),
        nullable=True,
        comment="Requester's hall at submission time"
    )

    # Draft fields
    reason: Mapped[str] = mapped_column(String(REASON_MAX_LENGTH), nullable=False)
    destination: Mapped[str] = mapped_column(String(DESTINATION_MAX_LENGTH), nullable=False)
    expected_return_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        comment="Expected return time as stated at submission"
    )
    comment: Mapped[Optional[str]] = mapped_column(String(COMMENT_MAX_LENGTH), nullable=True)

    status: Mapped[ExitRequestStatus] = mapped_column(
        status_column_type(),
        nullable=False,
        default=ExitRequestStatus.PENDING,
        comment="Lifecycle status"
    )

    # Review
    reviewed_by: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("principals.id", ondelete="SET NULL"),
        nullable=True
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    pass_credential: Mapped[Optional[str]] = mapped_column(
        String(128),
        nullable=True,
        unique=True,
        comment="Opaque gate pass issued on approval"
    )

    # Gate
    exited_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    exit_recorded_by: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("principals.id", ondelete="SET NULL"),
        nullable=True
    )
    actual_return_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    return_recorded_by: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("principals.id", ondelete="SET NULL"),
        nullable=True
    )

    requester: Mapped["Principal"] = relationship(
        "Principal",
        foreign_keys=[requester_id],
        lazy="joined"
    )
    hall: Mapped[Optional["Hall"]] = relationship("Hall", lazy="select")
    status_history: Mapped[list["ExitRequestStatusHistory"]] = relationship(
        "ExitRequestStatusHistory",
        back_populates="exit_request",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ExitRequestStatusHistory.changed_at",
        lazy="select"
    )

    def __repr__(self) -> str:
        return (
            f"<ExitRequest(id={self.id}, requester_id={self.requester_id}, "
            f"status={self.status.value})>"
        )

    @property
    def is_gate_usable(self) -> bool:
        return self.status in GATE_USABLE_STATUSES


class ExitRequestStatusHistory(BaseModel):
    """Append-only record of status changes."""

    __tablename__ = "exit_request_status_history"
    __table_args__ = (
        Index("ix_exit_request_status_history_request", "exit_request_id", "changed_at"),
    )

    exit_request_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("exit_requests.id", ondelete="CASCADE"),
        nullable=False
    )
    from_status: Mapped[Optional[ExitRequestStatus]] = mapped_column(
        status_column_type(),
        nullable=True,
        comment="Null for the creation entry"
    )
    to_status: Mapped[ExitRequestStatus] = mapped_column(status_column_type(), nullable=False)
    changed_by: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("principals.id", ondelete="SET NULL"),
        nullable=True
    )
    changed_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now)

    exit_request: Mapped["ExitRequest"] = relationship(
        "ExitRequest",
        back_populates="status_history"
    )
