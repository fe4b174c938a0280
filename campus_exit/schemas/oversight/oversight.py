"""
Oversight (super admin) reporting schemas.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from campus_exit.models.base import ExitRequestStatus, UserRole
from campus_exit.schemas.common.base import BaseSchema

__all__ = [
    "StatusCounts",
    "RoleCounts",
    "RequestListingItem",
    "PrincipalListingItem",
    "DashboardSummary",
]


class StatusCounts(BaseSchema):
    """Request counts; every status is always present."""

    pending: int = 0
    approved: int = 0
    declined: int = 0
    exited: int = 0
    returned: int = 0
    total: int = 0


class RoleCounts(BaseSchema):
    """Principal counts; every role is always present."""

    student: int = 0
    hall_admin: int = 0
    security: int = 0
    super_admin: int = 0
    total: int = 0


class RequestListingItem(BaseSchema):
    id: str
    requester_id: str
    requester_name: str
    student_number: Optional[str] = None
    hall_name: Optional[str] = Field(None, description="None when the requester has no hall")
    reason: str
    destination: str
    expected_return_at: datetime
    status: ExitRequestStatus
    pass_credential: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class PrincipalListingItem(BaseSchema):
    id: str
    full_name: str
    email: str
    role: Optional[UserRole] = None
    role_local_id: Optional[str] = None
    hall_name: Optional[str] = None


class DashboardSummary(BaseSchema):
    total_principals: int
    total_requests: int
    pending_requests: int
    approved_requests: int
