from campus_exit.services.common.permissions import (
    GATE_LOOKUP_ROLES,
    REQUEST_READER_ROLES,
    REVIEWER_ROLES,
    AuthenticatedPrincipal,
    is_resource_owner,
    require_owner,
    require_role,
)
from campus_exit.services.common.validation import first_error, parse_model

__all__ = [
    "AuthenticatedPrincipal",
    "GATE_LOOKUP_ROLES",
    "REQUEST_READER_ROLES",
    "REVIEWER_ROLES",
    "first_error",
    "is_resource_owner",
    "parse_model",
    "require_owner",
    "require_role",
]
