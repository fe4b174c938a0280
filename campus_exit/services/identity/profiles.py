"""
Role-specific profiles.

A profile is one of four frozen dataclasses; the ``role`` tag tells them
apart and each carries only the fields its role has.
"""

from dataclasses import dataclass, field
from typing import Optional, Union

from campus_exit.models.base import UserRole
from campus_exit.models.identity import (
    HallAdminRecord,
    Principal,
    SecurityRecord,
    StudentRecord,
    SuperAdminRecord,
)
from campus_exit.repositories.identity import ProfileRecord
from campus_exit.schemas.identity import ProfileResponse


@dataclass(frozen=True)
class StudentProfile:
    principal_id: str
    full_name: str
    email: str
    student_number: str
    phone: Optional[str] = None
    hall_id: Optional[str] = None
    hall_name: Optional[str] = None
    role: UserRole = field(default=UserRole.STUDENT, init=False)

    @property
    def role_local_id(self) -> Optional[str]:
        return self.student_number


@dataclass(frozen=True)
class HallAdminProfile:
    principal_id: str
    full_name: str
    email: str
    staff_number: str
    phone: Optional[str] = None
    hall_id: Optional[str] = None
    hall_name: Optional[str] = None
    role: UserRole = field(default=UserRole.HALL_ADMIN, init=False)

    @property
    def role_local_id(self) -> Optional[str]:
        return self.staff_number


@dataclass(frozen=True)
class SecurityProfile:
    principal_id: str
    full_name: str
    email: str
    badge_number: str
    phone: Optional[str] = None
    role: UserRole = field(default=UserRole.SECURITY, init=False)

    @property
    def role_local_id(self) -> Optional[str]:
        return self.badge_number


@dataclass(frozen=True)
class SuperAdminProfile:
    principal_id: str
    full_name: str
    email: str
    role: UserRole = field(default=UserRole.SUPER_ADMIN, init=False)

    @property
    def role_local_id(self) -> Optional[str]:
        return None


Profile = Union[StudentProfile, HallAdminProfile, SecurityProfile, SuperAdminProfile]


def build_profile(principal: Principal, record: ProfileRecord) -> Profile:
    """Assemble the profile for ``record``'s role from the stored rows."""
    if isinstance(record, StudentRecord):
        return StudentProfile(
            principal_id=principal.id,
            full_name=principal.full_name,
            email=principal.email,
            student_number=record.student_number,
            phone=record.phone,
            hall_id=record.hall_id,
            hall_name=record.hall.name if record.hall else None,
        )
    if isinstance(record, HallAdminRecord):
        return HallAdminProfile(
            principal_id=principal.id,
            full_name=principal.full_name,
            email=principal.email,
            staff_number=record.staff_number,
            phone=record.phone,
            hall_id=record.hall_id,
            hall_name=record.hall.name if record.hall else None,
        )
    if isinstance(record, SecurityRecord):
        return SecurityProfile(
            principal_id=principal.id,
            full_name=principal.full_name,
            email=principal.email,
            badge_number=record.badge_number,
            phone=record.phone,
        )
    if isinstance(record, SuperAdminRecord):
        return SuperAdminProfile(
            principal_id=principal.id,
            full_name=principal.full_name,
            email=principal.email,
        )
    raise TypeError(f"Unknown profile record type: {type(record).__name__}")


def to_profile_response(profile: Profile) -> ProfileResponse:
    return ProfileResponse(
        principal_id=profile.principal_id,
        role=profile.role,
        full_name=profile.full_name,
        email=profile.email,
        phone=getattr(profile, "phone", None),
        role_local_id=profile.role_local_id,
        hall_id=getattr(profile, "hall_id", None),
        hall_name=getattr(profile, "hall_name", None),
    )


__all__ = [
    "StudentProfile",
    "HallAdminProfile",
    "SecurityProfile",
    "SuperAdminProfile",
    "Profile",
    "build_profile",
    "to_profile_response",
]
