"""
Identity & role resolution service.

Maps a principal to its single role and its role-specific profile, and lets
principals edit the display fields of their own profile.
"""

from typing import Any, List, Mapping, Optional, Union

from sqlalchemy.orm import Session

from campus_exit.core.exceptions import (
    ForbiddenError,
    NotFoundError,
    ProfileNotFoundError,
    RoleNotFoundError,
    ValidationError,
)
from campus_exit.models.base import UserRole
from campus_exit.models.identity import HallAdminRecord, SecurityRecord, StudentRecord
from campus_exit.repositories.identity import IdentityRepository
from campus_exit.schemas.identity import HallResponse, ProfileUpdate
from campus_exit.services.base import BaseService, ServiceResult
from campus_exit.services.common.permissions import AuthenticatedPrincipal
from campus_exit.services.common.validation import parse_model
from campus_exit.services.identity.profiles import Profile, build_profile

# Roles whose profile carries a hall
_HALL_ROLES = frozenset({UserRole.STUDENT, UserRole.HALL_ADMIN})


class IdentityService(BaseService[IdentityRepository]):
    """
    Identity resolver.

    Role lookup fails closed: a missing assignment or a store failure both
    resolve to "unassigned", never to a role.
    """

    def __init__(self, db_session: Session, repository: Optional[IdentityRepository] = None):
        super().__init__(repository or IdentityRepository(db_session), db_session)

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def lookup_role(self, principal_id: str) -> Optional[UserRole]:
        """Role of ``principal_id``, or None when unassigned or unreadable."""
        try:
            return self.repository.get_role(principal_id)
        except Exception as e:
            self._logger.warning(
                f"Role lookup failed, treating principal as unassigned: {e}",
                extra={"principal_id": principal_id, "exception_type": type(e).__name__},
            )
            return None

    def load_profile(self, principal_id: str, role: UserRole) -> Profile:
        """
        Raises:
            ProfileNotFoundError: If the principal has no profile for ``role``
        """
        principal = self.repository.find_by_id(principal_id)
        record = self.repository.get_profile_record(principal_id, role)
        if principal is None or record is None:
            raise ProfileNotFoundError(principal_id, role.value)
        return build_profile(principal, record)

    def authenticate(self, principal_id: str) -> AuthenticatedPrincipal:
        """
        Resolve role and profile together.

        Raises:
            RoleNotFoundError: If the principal is unassigned
            ProfileNotFoundError: If the role's profile is missing
        """
        role = self.lookup_role(principal_id)
        if role is None:
            raise RoleNotFoundError(principal_id)
        return AuthenticatedPrincipal(
            principal_id=principal_id,
            role=role,
            profile=self.load_profile(principal_id, role),
        )

    def resolve_role(self, principal_id: str) -> ServiceResult[Optional[UserRole]]:
        """Single role lookup; unassigned is a successful ``None``."""
        return ServiceResult.success(self.lookup_role(principal_id))

    def resolve_profile(self, principal_id: str, role: UserRole) -> ServiceResult[Profile]:
        try:
            return ServiceResult.success(self.load_profile(principal_id, role))
        except Exception as e:
            return self._handle_exception(e, "resolve profile", principal_id)

    def resolve_principal(self, principal_id: str) -> ServiceResult[AuthenticatedPrincipal]:
        try:
            return ServiceResult.success(self.authenticate(principal_id))
        except Exception as e:
            return self._handle_exception(e, "resolve principal", principal_id)

    # -------------------------------------------------------------------------
    # Profile editing
    # -------------------------------------------------------------------------

    def update_profile(
        self,
        principal_id: str,
        changes: Union[ProfileUpdate, Mapping[str, Any]],
    ) -> ServiceResult[Profile]:
        """
        Update full name, phone and hall on the caller's own profile.

        Students may move between halls. A hall admin may set a hall only
        while none is assigned. Security officers and super admins have no
        hall; super admins have no phone either.
        """
        try:
            update = parse_model(ProfileUpdate, changes)
            fields = update.model_fields_set
            caller = self.authenticate(principal_id)

            principal = self.repository.get_by_id(principal_id)
            record = self.repository.get_profile_record(principal_id, caller.role)
            if record is None:
                raise ProfileNotFoundError(principal_id, caller.role.value)

            # A rejected field discards every change staged before it
            with self.transaction():
                if "full_name" in fields and update.full_name:
                    principal.full_name = update.full_name

                if "phone" in fields:
                    if not isinstance(record, (StudentRecord, HallAdminRecord, SecurityRecord)):
                        raise ValidationError("This role has no phone on its profile", field="phone")
                    record.phone = update.phone

                if "hall_id" in fields:
                    self._apply_hall_change(caller, record, update.hall_id)

                self.repository.save(principal, record, commit=False)
            self._log_operation("update profile", principal_id, {"fields": sorted(fields)})
            return ServiceResult.success(self.load_profile(principal_id, caller.role))
        except Exception as e:
            return self._handle_exception(e, "update profile", principal_id)

    def _apply_hall_change(self, caller: AuthenticatedPrincipal, record, hall_id: Optional[str]) -> None:
        if caller.role not in _HALL_ROLES:
            raise ValidationError("This role has no hall affiliation", field="hall_id")

        if hall_id is not None and self.repository.find_hall(hall_id) is None:
            raise NotFoundError("Hall", hall_id)

        if caller.role == UserRole.HALL_ADMIN and record.hall_id is not None:
            if record.hall_id == hall_id:
                return
            raise ForbiddenError(
                "A hall administrator's hall cannot be changed once assigned",
                principal_id=caller.principal_id,
            )

        record.hall_id = hall_id
        # Drop the stale joined hall so the next load reflects the new one
        self.db.expire(record, ["hall"])

    # -------------------------------------------------------------------------
    # Halls
    # -------------------------------------------------------------------------

    def list_halls(self) -> ServiceResult[List[HallResponse]]:
        try:
            halls = self.repository.list_halls()
            return ServiceResult.success([HallResponse.model_validate(hall) for hall in halls])
        except Exception as e:
            return self._handle_exception(e, "list halls")
