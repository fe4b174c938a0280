"""
Identity Repository

Read access to principals, their single role assignment, their role
profile records and halls, plus the profile-field writes owners may make.
"""

from typing import Dict, List, Optional, Tuple, Type, Union

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from campus_exit.core.exceptions import RepositoryError
from campus_exit.models.base import UserRole
from campus_exit.models.identity import (
    Hall,
    HallAdminRecord,
    Principal,
    RoleAssignment,
    SecurityRecord,
    StudentRecord,
    SuperAdminRecord,
)
from campus_exit.repositories.base.base_repository import BaseRepository

ProfileRecord = Union[StudentRecord, HallAdminRecord, SecurityRecord, SuperAdminRecord]

PROFILE_MODELS: Dict[UserRole, Type[ProfileRecord]] = {
    UserRole.STUDENT: StudentRecord,
    UserRole.HALL_ADMIN: HallAdminRecord,
    UserRole.SECURITY: SecurityRecord,
    UserRole.SUPER_ADMIN: SuperAdminRecord,
}

# (principal, role or None, role-local id, hall name)
PrincipalListingRow = Tuple[Principal, Optional[UserRole], Optional[str], Optional[str]]


def role_local_id(record: Optional[ProfileRecord]) -> Optional[str]:
    """The identifier a role issues to its members, if it has one."""
    if isinstance(record, StudentRecord):
        return record.student_number
    if isinstance(record, HallAdminRecord):
        return record.staff_number
    if isinstance(record, SecurityRecord):
        return record.badge_number
    return None


class IdentityRepository(BaseRepository[Principal]):
    """Principal, role and profile lookups."""

    def __init__(self, db: Session):
        super().__init__(Principal, db)

    # ============================================================================
    # ROLES & PROFILES
    # ============================================================================

    def get_role(self, principal_id: str) -> Optional[UserRole]:
        """Single role-assignment lookup; None when unassigned."""
        try:
            return self.db.execute(
                select(RoleAssignment.role).where(RoleAssignment.principal_id == principal_id)
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Role lookup failed: {str(e)}") from e

    def get_profile_record(self, principal_id: str, role: UserRole) -> Optional[ProfileRecord]:
        """Profile row for ``role``; None when the principal has none."""
        model = PROFILE_MODELS[role]
        try:
            return self.db.execute(
                select(model).where(model.principal_id == principal_id)
            ).unique().scalar_one_or_none()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Profile lookup failed: {str(e)}") from e

    def save(self, *entities, commit: bool = True) -> None:
        """Stage pending changes on already-loaded entities, committing unless told not to."""
        try:
            for entity in entities:
                self.db.add(entity)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError(f"Save failed: {str(e)}") from e
        if commit:
            self.commit()

    # ============================================================================
    # HALLS
    # ============================================================================

    def list_halls(self) -> List[Hall]:
        try:
            return list(self.db.scalars(select(Hall).order_by(Hall.name)).all())
        except SQLAlchemyError as e:
            raise RepositoryError(f"Hall listing failed: {str(e)}") from e

    def find_hall(self, hall_id: str) -> Optional[Hall]:
        try:
            return self.db.get(Hall, hall_id)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Hall lookup failed: {str(e)}") from e

    # ============================================================================
    # REPORTING
    # ============================================================================

    def count_by_role(self) -> Dict[UserRole, int]:
        """Role assignment counts; roles nobody holds are absent."""
        stmt = select(RoleAssignment.role, func.count()).group_by(RoleAssignment.role)
        try:
            rows = self.db.execute(stmt).all()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Role count failed: {str(e)}") from e
        return {role: int(count) for role, count in rows}

    def list_principals(self, role: Optional[UserRole] = None) -> List[PrincipalListingRow]:
        """
        Principals with their role, role-local id and hall name, by name.

        Args:
            role: Restrict to principals holding this role
        """
        stmt = (
            select(Principal, RoleAssignment.role)
            .outerjoin(RoleAssignment, RoleAssignment.principal_id == Principal.id)
        )
        if role is not None:
            stmt = stmt.where(RoleAssignment.role == role)
        stmt = stmt.order_by(Principal.full_name, Principal.email)

        try:
            rows = self.db.execute(stmt).all()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Principal listing failed: {str(e)}") from e

        listing: List[PrincipalListingRow] = []
        for principal, principal_role in rows:
            record = (
                self.get_profile_record(principal.id, principal_role)
                if principal_role is not None
                else None
            )
            hall = getattr(record, "hall", None)
            listing.append(
                (principal, principal_role, role_local_id(record), hall.name if hall else None)
            )
        return listing
