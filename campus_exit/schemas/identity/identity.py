"""
Identity schemas: halls, profiles and the profile editor body.
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field, field_validator

from campus_exit.models.base import UserRole
from campus_exit.schemas.common.base import BaseSchema

__all__ = [
    "HallResponse",
    "ProfileUpdate",
    "ProfileResponse",
]


class HallResponse(BaseSchema):
    id: str
    name: str


class ProfileUpdate(BaseSchema):
    """
    Fields a principal may change on their own profile.

    Omitted fields are left unchanged.
    """

    full_name: Optional[str] = Field(None, min_length=2, max_length=200)
    phone: Optional[str] = Field(
        None,
        max_length=20,
        pattern=r"^\+?[0-9][0-9 \-]{5,19}$",
        description="Contact phone number",
    )
    hall_id: Optional[str] = Field(None, description="Hall of residence or administration")

    @field_validator("hall_id")
    @classmethod
    def blank_hall_to_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class ProfileResponse(BaseSchema):
    """Role-specific profile as seen by its owner."""

    principal_id: str
    role: UserRole
    full_name: str
    email: str
    phone: Optional[str] = None
    role_local_id: Optional[str] = Field(
        None, description="Student, staff or badge number; absent for super admins"
    )
    hall_id: Optional[str] = None
    hall_name: Optional[str] = None
