"""
Oversight reporting service.

Read-only views for super admins: counts, filtered listings and overdue
trips. Nothing here mutates the store.
"""

from datetime import datetime
from typing import List, Optional, Union

from sqlalchemy.orm import Session

from campus_exit.core.exceptions import ValidationError
from campus_exit.core.utils import ensure_utc, utc_now
from campus_exit.models.base import ExitRequestStatus, UserRole
from campus_exit.repositories.exit_request import ExitRequestRepository
from campus_exit.repositories.identity import IdentityRepository
from campus_exit.schemas.exit_request import ExitRequestResponse
from campus_exit.schemas.oversight import (
    DashboardSummary,
    PrincipalListingItem,
    RequestListingItem,
    RoleCounts,
    StatusCounts,
)
from campus_exit.services.base import BaseService, ServiceResult
from campus_exit.services.common.permissions import require_role
from campus_exit.services.exit_request.lifecycle_service import parse_status
from campus_exit.services.identity import IdentityService

MAX_SEARCH_LENGTH = 100


class OversightService(BaseService[ExitRequestRepository]):
    """Super admin dashboard queries."""

    def __init__(self, db_session: Session, identity_service: Optional[IdentityService] = None):
        super().__init__(ExitRequestRepository(db_session), db_session)
        self.identity = identity_service or IdentityService(db_session)
        self.identity_repository: IdentityRepository = self.identity.repository

    def _require_super_admin(self, principal_id: str) -> None:
        caller = self.identity.authenticate(principal_id)
        require_role(
            caller,
            [UserRole.SUPER_ADMIN],
            error_message="Oversight is restricted to super admins",
        )

    def request_counts_by_status(self, principal_id: str) -> ServiceResult[StatusCounts]:
        """Counts for all five statuses, zero-filled, plus the total."""
        try:
            self._require_super_admin(principal_id)
            return ServiceResult.success(self._status_counts())
        except Exception as e:
            return self._handle_exception(e, "count requests by status", principal_id)

    def principal_counts_by_role(self, principal_id: str) -> ServiceResult[RoleCounts]:
        """Counts for all four roles, zero-filled, plus the total of assigned principals."""
        try:
            self._require_super_admin(principal_id)
            counts = self.identity_repository.count_by_role()
            per_role = {role.value: counts.get(role, 0) for role in UserRole}
            return ServiceResult.success(RoleCounts(total=sum(per_role.values()), **per_role))
        except Exception as e:
            return self._handle_exception(e, "count principals by role", principal_id)

    def list_requests(
        self,
        principal_id: str,
        status: Union[ExitRequestStatus, str, None] = None,
        search: Optional[str] = None,
    ) -> ServiceResult[List[RequestListingItem]]:
        """
        All requests, newest first, optionally filtered.

        ``search`` is a case-insensitive substring matched against the
        requester's name, the destination and the reason.
        """
        try:
            status_filter = parse_status(status)
            self._require_super_admin(principal_id)

            term = (search or "").strip() or None
            if term and len(term) > MAX_SEARCH_LENGTH:
                raise ValidationError(
                    f"Search must be at most {MAX_SEARCH_LENGTH} characters", field="search"
                )

            rows = self.repository.search_listing(status=status_filter, search=term)
            items = [
                RequestListingItem(
                    id=request.id,
                    requester_id=request.requester_id,
                    requester_name=requester_name,
                    student_number=student_number,
                    hall_name=hall_name,
                    reason=request.reason,
                    destination=request.destination,
                    expected_return_at=request.expected_return_at,
                    status=request.status,
                    pass_credential=request.pass_credential,
                    created_at=request.created_at,
                    updated_at=request.updated_at,
                )
                for request, requester_name, student_number, hall_name in rows
            ]
            return ServiceResult.success(items)
        except Exception as e:
            return self._handle_exception(e, "list requests", principal_id)

    def list_principals(
        self,
        principal_id: str,
        role: Union[UserRole, str, None] = None,
    ) -> ServiceResult[List[PrincipalListingItem]]:
        try:
            role_filter = self._parse_role(role)
            self._require_super_admin(principal_id)

            rows = self.identity_repository.list_principals(role_filter)
            items = [
                PrincipalListingItem(
                    id=principal.id,
                    full_name=principal.full_name,
                    email=principal.email,
                    role=principal_role,
                    role_local_id=local_id,
                    hall_name=hall_name,
                )
                for principal, principal_role, local_id, hall_name in rows
            ]
            return ServiceResult.success(items)
        except Exception as e:
            return self._handle_exception(e, "list principals", principal_id)

    def overdue_requests(
        self,
        principal_id: str,
        now: Optional[datetime] = None,
    ) -> ServiceResult[List[ExitRequestResponse]]:
        """Exited requests past their expected return time."""
        try:
            self._require_super_admin(principal_id)
            reference = ensure_utc(now) if now else utc_now()
            requests = self.repository.find_overdue(reference)
            return ServiceResult.success(
                [ExitRequestResponse.model_validate(r) for r in requests]
            )
        except Exception as e:
            return self._handle_exception(e, "list overdue requests", principal_id)

    def dashboard_summary(self, principal_id: str) -> ServiceResult[DashboardSummary]:
        try:
            self._require_super_admin(principal_id)
            counts = self._status_counts()
            return ServiceResult.success(
                DashboardSummary(
                    total_principals=self.identity_repository.count(),
                    total_requests=counts.total,
                    pending_requests=counts.pending,
                    approved_requests=counts.approved,
                )
            )
        except Exception as e:
            return self._handle_exception(e, "load dashboard summary", principal_id)

    def _status_counts(self) -> StatusCounts:
        counts = self.repository.count_by_status()
        per_status = {status.value: counts.get(status, 0) for status in ExitRequestStatus}
        return StatusCounts(total=sum(per_status.values()), **per_status)

    @staticmethod
    def _parse_role(role: Union[UserRole, str, None]) -> Optional[UserRole]:
        if role is None or isinstance(role, UserRole):
            return role
        try:
            return UserRole(str(role).strip().lower())
        except ValueError:
            raise ValidationError(f"Unknown role '{role}'", field="role")
