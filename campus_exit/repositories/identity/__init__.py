from campus_exit.repositories.identity.identity_repository import (
    PROFILE_MODELS,
    IdentityRepository,
    PrincipalListingRow,
    ProfileRecord,
    role_local_id,
)

__all__ = [
    "IdentityRepository",
    "PROFILE_MODELS",
    "PrincipalListingRow",
    "ProfileRecord",
    "role_local_id",
]
