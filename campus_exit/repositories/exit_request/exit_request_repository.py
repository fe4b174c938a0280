"""
Exit Request Repository

Record store for exit requests: inserts guarded by the one-active-request
index, status-conditional updates and deletes, and the queries the
lifecycle, gate and oversight services run.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, aliased

from campus_exit.core.exceptions import RepositoryError
from campus_exit.core.utils import utc_now
from campus_exit.models.base import ACTIVE_STATUSES, ExitRequestStatus
from campus_exit.models.exit_request import ExitRequest, ExitRequestStatusHistory
from campus_exit.models.identity import Hall, Principal, StudentRecord
from campus_exit.repositories.base.base_repository import BaseRepository

# (request, requester name, student number, requester hall name)
RequestListingRow = Tuple[ExitRequest, str, Optional[str], Optional[str]]


class ExitRequestRepository(BaseRepository[ExitRequest]):
    """
    Exit request repository.

    Every status transition goes through ``conditional_update`` or
    ``conditional_delete`` so the status check and the write happen in one
    statement.
    """

    def __init__(self, db: Session):
        super().__init__(ExitRequest, db)

    # ============================================================================
    # CORE OPERATIONS
    # ============================================================================

    def insert(
        self,
        request: ExitRequest,
        changed_by: Optional[str] = None,
        commit: bool = True,
    ) -> ExitRequest:
        """
        Insert a new request together with its creation history entry.

        Raises:
            UniqueConstraintViolationError: If the requester already holds an
                active request (partial unique index) or the id collides
        """
        self.create(request, commit=False)
        self.add_status_history(
            request.id,
            from_status=None,
            to_status=request.status,
            changed_by=changed_by,
            commit=False,
        )
        if commit:
            self.commit()
        return request

    def add_status_history(
        self,
        request_id: str,
        from_status: Optional[ExitRequestStatus],
        to_status: ExitRequestStatus,
        changed_by: Optional[str] = None,
        changed_at: Optional[datetime] = None,
        commit: bool = True,
    ) -> ExitRequestStatusHistory:
        """Append a status change row."""
        entry = ExitRequestStatusHistory(
            exit_request_id=request_id,
            from_status=from_status,
            to_status=to_status,
            changed_by=changed_by,
            changed_at=changed_at or utc_now(),
        )
        try:
            self.db.add(entry)
            if commit:
                self.commit()
            else:
                self.db.flush()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError(f"Status history write failed: {str(e)}") from e
        return entry

    def delete_status_history(self, request_id: str, commit: bool = True) -> int:
        """Remove every history row of a request; returns the number removed."""
        try:
            result = self.db.execute(
                delete(ExitRequestStatusHistory)
                .where(ExitRequestStatusHistory.exit_request_id == request_id)
                .execution_options(synchronize_session=False)
            )
            if commit:
                self.commit()
            else:
                self.db.flush()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError(f"Status history delete failed: {str(e)}") from e
        return result.rowcount

    def status_history(self, request_id: str) -> List[ExitRequestStatusHistory]:
        stmt = (
            select(ExitRequestStatusHistory)
            .where(ExitRequestStatusHistory.exit_request_id == request_id)
            .order_by(ExitRequestStatusHistory.changed_at, ExitRequestStatusHistory.id)
        )
        return list(self._scalars(stmt))

    # ============================================================================
    # QUERIES
    # ============================================================================

    def query_by_requester(self, requester_id: str) -> List[ExitRequest]:
        """All requests of one requester, newest first."""
        stmt = (
            select(ExitRequest)
            .where(ExitRequest.requester_id == requester_id)
            .order_by(ExitRequest.created_at.desc())
        )
        return list(self._scalars(stmt))

    def query_by_status(
        self,
        statuses: Optional[Sequence[ExitRequestStatus]] = None,
        hall_id: Optional[str] = None,
    ) -> List[ExitRequest]:
        """
        Requests filtered by status (any status when omitted), newest first.

        Args:
            statuses: Statuses to include
            hall_id: Restrict to requests submitted from this hall
        """
        stmt = select(ExitRequest)
        if statuses:
            stmt = stmt.where(ExitRequest.status.in_(list(statuses)))
        if hall_id is not None:
            stmt = stmt.where(ExitRequest.hall_id == hall_id)
        stmt = stmt.order_by(ExitRequest.created_at.desc())
        return list(self._scalars(stmt))

    def query_by_credential(self, credential: str) -> Optional[ExitRequest]:
        """Exact match on the pass credential."""
        stmt = select(ExitRequest).where(ExitRequest.pass_credential == credential)
        results = list(self._scalars(stmt))
        return results[0] if results else None

    def find_active_for_requester(self, requester_id: str) -> Optional[ExitRequest]:
        """The requester's pending, approved or exited request, if any."""
        stmt = (
            select(ExitRequest)
            .where(
                ExitRequest.requester_id == requester_id,
                ExitRequest.status.in_(list(ACTIVE_STATUSES)),
            )
            .order_by(ExitRequest.created_at.desc())
            .limit(1)
        )
        results = list(self._scalars(stmt))
        return results[0] if results else None

    def recent_gate_activity(self, limit: int = 10) -> List[ExitRequest]:
        """Latest exited or returned requests by update time."""
        stmt = (
            select(ExitRequest)
            .where(
                ExitRequest.status.in_(
                    [ExitRequestStatus.EXITED, ExitRequestStatus.RETURNED]
                )
            )
            .order_by(ExitRequest.updated_at.desc())
            .limit(limit)
        )
        return list(self._scalars(stmt))

    def find_overdue(self, now: datetime) -> List[ExitRequest]:
        """Exited requests whose expected return time has passed, most overdue first."""
        stmt = (
            select(ExitRequest)
            .where(
                ExitRequest.status == ExitRequestStatus.EXITED,
                ExitRequest.expected_return_at < now,
            )
            .order_by(ExitRequest.expected_return_at.asc())
        )
        return list(self._scalars(stmt))

    # ============================================================================
    # REPORTING
    # ============================================================================

    def count_by_status(self) -> Dict[ExitRequestStatus, int]:
        """Counts keyed by status; statuses with no rows are absent."""
        stmt = select(ExitRequest.status, func.count()).group_by(ExitRequest.status)
        try:
            rows = self.db.execute(stmt).all()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Status count failed: {str(e)}") from e
        return {status: int(count) for status, count in rows}

    def search_listing(
        self,
        status: Optional[ExitRequestStatus] = None,
        search: Optional[str] = None,
    ) -> List[RequestListingRow]:
        """
        Requests joined with requester details for the oversight listing.

        Args:
            status: Restrict to one status
            search: Case-insensitive substring matched against requester
                name, destination and reason

        Returns:
            Rows of (request, requester name, student number, hall name),
            newest first
        """
        requester_hall = aliased(Hall)
        stmt = (
            select(
                ExitRequest,
                Principal.full_name,
                StudentRecord.student_number,
                requester_hall.name,
            )
            .join(Principal, Principal.id == ExitRequest.requester_id)
            .outerjoin(StudentRecord, StudentRecord.principal_id == ExitRequest.requester_id)
            .outerjoin(requester_hall, requester_hall.id == StudentRecord.hall_id)
        )
        if status is not None:
            stmt = stmt.where(ExitRequest.status == status)
        if search:
            # Literal substring: wildcard characters in the term are escaped
            term = search.strip().lower()
            stmt = stmt.where(
                or_(
                    func.lower(Principal.full_name).contains(term, autoescape=True),
                    func.lower(ExitRequest.destination).contains(term, autoescape=True),
                    func.lower(ExitRequest.reason).contains(term, autoescape=True),
                )
            )
        stmt = stmt.order_by(ExitRequest.created_at.desc())

        try:
            rows = self.db.execute(stmt).unique().all()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Request listing failed: {str(e)}") from e
        return [(row[0], row[1], row[2], row[3]) for row in rows]

    # ============================================================================
    # HELPERS
    # ============================================================================

    def _scalars(self, stmt) -> Any:
        try:
            return self.db.scalars(stmt).unique().all()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Exit request query failed: {str(e)}") from e
