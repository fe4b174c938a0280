from campus_exit.services.identity.identity_service import IdentityService
from campus_exit.services.identity.profiles import (
    HallAdminProfile,
    Profile,
    SecurityProfile,
    StudentProfile,
    SuperAdminProfile,
    build_profile,
    to_profile_response,
)

__all__ = [
    "IdentityService",
    "Profile",
    "StudentProfile",
    "HallAdminProfile",
    "SecurityProfile",
    "SuperAdminProfile",
    "build_profile",
    "to_profile_response",
]
