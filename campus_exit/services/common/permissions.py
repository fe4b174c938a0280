"""
Permission and authorization utilities.

Role checks for the exit pass workflow. Every principal holds exactly one
role; an unassigned principal never reaches these checks because identity
resolution fails first.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Optional

from campus_exit.core.exceptions import ForbiddenError
from campus_exit.models.base import UserRole

if TYPE_CHECKING:
    from campus_exit.services.identity.profiles import Profile

# Roles allowed to decide on pending requests
REVIEWER_ROLES = frozenset({UserRole.HALL_ADMIN, UserRole.SUPER_ADMIN})

# Roles allowed to look up passes at the gate
GATE_LOOKUP_ROLES = frozenset({UserRole.SECURITY, UserRole.SUPER_ADMIN})

# Roles allowed to read any request
REQUEST_READER_ROLES = frozenset({
    UserRole.HALL_ADMIN,
    UserRole.SECURITY,
    UserRole.SUPER_ADMIN,
})


@dataclass(frozen=True)
class AuthenticatedPrincipal:
    """
    Represents an authenticated principal in the service layer.

    Attributes:
        principal_id: Unique identifier of the principal
        role: The principal's single role
        profile: Role-specific profile
    """
    principal_id: str
    role: UserRole
    profile: "Profile"

    def has_any_role(self, roles: Iterable[UserRole]) -> bool:
        """Check if principal has any of the specified roles."""
        return self.role in set(roles)

    @property
    def hall_id(self) -> Optional[str]:
        return getattr(self.profile, "hall_id", None)


def require_role(
    principal: AuthenticatedPrincipal,
    allowed_roles: Iterable[UserRole],
    *,
    error_message: Optional[str] = None,
) -> None:
    """
    Assert that principal has one of the allowed roles.

    Raises:
        ForbiddenError: If principal lacks required role

    Example:
        >>> require_role(principal, [UserRole.SECURITY])
    """
    allowed = list(allowed_roles)
    if not principal.has_any_role(allowed):
        roles_str = ", ".join(sorted(r.value for r in allowed))
        msg = error_message or (
            f"Role '{principal.role.value}' may not perform this action "
            f"(requires one of: {roles_str})"
        )
        raise ForbiddenError(
            msg,
            principal_id=principal.principal_id,
            required_roles=sorted(r.value for r in allowed),
        )


def is_resource_owner(principal: AuthenticatedPrincipal, resource_owner_id: str) -> bool:
    """Check if principal owns a resource."""
    return principal.principal_id == str(resource_owner_id)


def require_owner(
    principal: AuthenticatedPrincipal,
    resource_owner_id: str,
    *,
    error_message: Optional[str] = None,
) -> None:
    """
    Assert that principal owns the resource.

    Raises:
        ForbiddenError: If principal is not the owner
    """
    if not is_resource_owner(principal, resource_owner_id):
        raise ForbiddenError(
            error_message or "Only the requester may modify this request",
            principal_id=principal.principal_id,
        )
