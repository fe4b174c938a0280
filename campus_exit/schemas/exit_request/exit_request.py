"""
Exit request schemas.

Draft validation for submit and edit, the review decision body and the
response shapes returned by the lifecycle and gate services.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import ConfigDict, Field, field_validator

from campus_exit.core.utils import ensure_utc, utc_now
from campus_exit.models.base import ExitRequestStatus, ReviewDecision
from campus_exit.models.exit_request.exit_request import (
    COMMENT_MAX_LENGTH,
    DESTINATION_MAX_LENGTH,
    REASON_MAX_LENGTH,
)
from campus_exit.schemas.common.base import BaseResponseSchema, BaseSchema

__all__ = [
    "ExitRequestDraft",
    "ReviewRequest",
    "GateAction",
    "StatusHistoryEntry",
    "ExitRequestResponse",
    "PassLookupResponse",
]

REASON_MIN_LENGTH = 5
DESTINATION_MIN_LENGTH = 3


class ExitRequestDraft(BaseSchema):
    """
    Requester-supplied fields of an exit request.

    Fields are validated in declaration order; the first failure is the one
    reported to the caller.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "reason": "Family visit over the weekend",
                "destination": "Lagos",
                "expected_return_at": "2026-11-02T18:00:00Z",
                "comment": "Will be reachable on my phone",
            }
        }
    )

    reason: str = Field(
        ...,
        min_length=REASON_MIN_LENGTH,
        max_length=REASON_MAX_LENGTH,
        description="Why the requester is leaving campus",
    )
    destination: str = Field(
        ...,
        min_length=DESTINATION_MIN_LENGTH,
        max_length=DESTINATION_MAX_LENGTH,
        description="Where the requester is going",
    )
    expected_return_at: datetime = Field(
        ...,
        description="When the requester expects to be back (must be in the future)",
    )
    comment: Optional[str] = Field(
        None,
        max_length=COMMENT_MAX_LENGTH,
        description="Optional note for the reviewer",
    )

    @field_validator("expected_return_at")
    @classmethod
    def validate_return_in_future(cls, v: datetime) -> datetime:
        """Normalize to UTC and reject times that are not in the future."""
        v = ensure_utc(v)
        if v <= utc_now():
            raise ValueError("Expected return time must be in the future")
        return v

    @field_validator("comment")
    @classmethod
    def empty_comment_to_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class ReviewRequest(BaseSchema):
    """Reviewer decision on a pending request."""

    decision: ReviewDecision = Field(..., description="approve or decline")


class GateAction(str, Enum):
    """Next action a gate officer may take with a pass."""

    EXIT = "exit"
    RETURN = "return"


class StatusHistoryEntry(BaseSchema):
    from_status: Optional[ExitRequestStatus] = None
    to_status: ExitRequestStatus
    changed_by: Optional[str] = None
    changed_at: datetime


class ExitRequestResponse(BaseResponseSchema):
    """Stored exit request."""

    requester_id: str
    hall_id: Optional[str] = None
    reason: str
    destination: str
    expected_return_at: datetime
    comment: Optional[str] = None
    status: ExitRequestStatus
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    pass_credential: Optional[str] = None
    exited_at: Optional[datetime] = None
    exit_recorded_by: Optional[str] = None
    actual_return_at: Optional[datetime] = None
    return_recorded_by: Optional[str] = None


class PassLookupResponse(BaseSchema):
    """
    Result of a credential lookup at the gate.

    ``usable`` is true only for approved or exited requests; the real status
    is always reported so declined or completed passes are recognizable.
    """

    request: ExitRequestResponse
    requester_name: Optional[str] = None
    usable: bool
    next_action: Optional[GateAction] = None
    history: List[StatusHistoryEntry] = Field(default_factory=list)
