"""
Exit request lifecycle service.

Submission, requester edits and withdrawal, and reviewer decisions. Every
status change is a conditional write on the expected pre-state, so a
request that moved on underneath the caller is reported as INVALID_STATE
rather than overwritten.
"""

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Union

from sqlalchemy.orm import Session

from campus_exit.config.settings import Settings, get_settings
from campus_exit.core.exceptions import (
    ActiveRequestExistsError,
    ForbiddenError,
    HallNotSetError,
    InvalidStateError,
    PreconditionFailedError,
    UniqueConstraintViolationError,
    ValidationError,
)
from campus_exit.core.utils import epoch_millis, utc_now
from campus_exit.models.base import ExitRequestStatus, ReviewDecision, UserRole
from campus_exit.models.exit_request import ExitRequest
from campus_exit.repositories.exit_request import ExitRequestRepository
from campus_exit.schemas.exit_request import ExitRequestDraft, ExitRequestResponse
from campus_exit.services.base import BaseService, ServiceResult
from campus_exit.services.common.permissions import (
    REQUEST_READER_ROLES,
    REVIEWER_ROLES,
    AuthenticatedPrincipal,
    is_resource_owner,
    require_owner,
    require_role,
)
from campus_exit.services.common.validation import parse_model
from campus_exit.services.exit_request.transitions import (
    StatusTransitionMixin,
    invalid_state_from,
)
from campus_exit.services.identity import IdentityService

DraftInput = Union[ExitRequestDraft, Mapping[str, Any]]


def make_pass_credential(prefix: str, request_id: str, issued_at: datetime) -> str:
    """Pass credential: prefix, request id and issuance time in epoch milliseconds."""
    return f"{prefix}-{request_id}-{epoch_millis(issued_at)}"


def parse_status(value: Union[ExitRequestStatus, str, None], field: str = "status") -> Optional[ExitRequestStatus]:
    """
    Raises:
        ValidationError: If ``value`` is not one of the five status tokens
    """
    if value is None or isinstance(value, ExitRequestStatus):
        return value
    try:
        return ExitRequestStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown status '{value}'", field=field)


class ExitRequestLifecycleService(StatusTransitionMixin, BaseService[ExitRequestRepository]):
    """
    Lifecycle engine for exit requests.

    pending -> approved | declined, approved -> exited, exited -> returned.
    Requesters may edit or withdraw while pending; reviewers decide.
    """

    def __init__(
        self,
        db_session: Session,
        identity_service: Optional[IdentityService] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(ExitRequestRepository(db_session), db_session)
        self.identity = identity_service or IdentityService(db_session)
        self.settings = settings or get_settings()

    # -------------------------------------------------------------------------
    # Requester operations
    # -------------------------------------------------------------------------

    def submit(self, requester_id: str, draft: DraftInput) -> ServiceResult[ExitRequestResponse]:
        """
        Create a pending request.

        Failures: FORBIDDEN (not a student), VALIDATION_ERROR (first invalid
        field), HALL_NOT_SET, ACTIVE_REQUEST_EXISTS.
        """
        try:
            caller = self.identity.authenticate(requester_id)
            require_role(
                caller,
                [UserRole.STUDENT],
                error_message="Only students may submit exit requests",
            )
            valid = parse_model(ExitRequestDraft, draft)

            hall_id = caller.hall_id
            if not hall_id:
                raise HallNotSetError(requester_id)

            active = self.repository.find_active_for_requester(requester_id)
            if active is not None:
                raise ActiveRequestExistsError(requester_id, active.id)

            request = ExitRequest(
                requester_id=requester_id,
                hall_id=hall_id,
                reason=valid.reason,
                destination=valid.destination,
                expected_return_at=valid.expected_return_at,
                comment=valid.comment,
                status=ExitRequestStatus.PENDING,
            )
            try:
                with self.transaction():
                    self.repository.insert(request, changed_by=requester_id, commit=False)
            except UniqueConstraintViolationError as e:
                # Lost a race with a concurrent submission by the same requester
                raise ActiveRequestExistsError(requester_id) from e

            self._log_transition(request.id, requester_id, None, ExitRequestStatus.PENDING)
            return ServiceResult.success(
                ExitRequestResponse.model_validate(request),
                message="Exit request submitted",
            )
        except Exception as e:
            return self._handle_exception(e, "submit exit request", requester_id)

    def edit(
        self,
        requester_id: str,
        request_id: str,
        draft: DraftInput,
    ) -> ServiceResult[ExitRequestResponse]:
        """Overwrite the draft fields of a pending request; status, review and pass fields stay."""
        try:
            caller = self.identity.authenticate(requester_id)
            request = self.repository.get_by_id(request_id)
            require_owner(caller, request.requester_id)
            if request.status != ExitRequestStatus.PENDING:
                raise InvalidStateError(
                    current_status=request.status.value,
                    expected_status=ExitRequestStatus.PENDING.value,
                    request_id=request_id,
                )
            valid = parse_model(ExitRequestDraft, draft)

            patch = {
                "reason": valid.reason,
                "destination": valid.destination,
                "expected_return_at": valid.expected_return_at,
                "comment": valid.comment,
                "updated_at": utc_now(),
            }
            try:
                with self.transaction():
                    updated = self.repository.conditional_update(
                        request_id, ExitRequestStatus.PENDING, patch, commit=False
                    )
            except PreconditionFailedError as e:
                raise invalid_state_from(e, request_id) from e

            self._log_operation("edit exit request", request_id, {"actor_id": requester_id})
            return ServiceResult.success(ExitRequestResponse.model_validate(updated))
        except Exception as e:
            return self._handle_exception(e, "edit exit request", request_id)

    def withdraw(self, requester_id: str, request_id: str) -> ServiceResult[str]:
        """Permanently remove a pending request; returns its id."""
        try:
            caller = self.identity.authenticate(requester_id)
            request = self.repository.get_by_id(request_id)
            require_owner(caller, request.requester_id)
            if request.status != ExitRequestStatus.PENDING:
                raise InvalidStateError(
                    current_status=request.status.value,
                    expected_status=ExitRequestStatus.PENDING.value,
                    request_id=request_id,
                )

            try:
                with self.transaction():
                    self.repository.conditional_delete(
                        request_id, ExitRequestStatus.PENDING, commit=False
                    )
                    self.repository.delete_status_history(request_id, commit=False)
            except PreconditionFailedError as e:
                raise invalid_state_from(e, request_id) from e

            self._logger.info(
                "Exit request withdrawn",
                extra={"exit_request_id": request_id, "actor_id": requester_id},
            )
            return ServiceResult.success(request_id, message="Exit request withdrawn")
        except Exception as e:
            return self._handle_exception(e, "withdraw exit request", request_id)

    def list_own_requests(self, requester_id: str) -> ServiceResult[List[ExitRequestResponse]]:
        """The caller's requests, newest first."""
        try:
            self.identity.authenticate(requester_id)
            requests = self.repository.query_by_requester(requester_id)
            return ServiceResult.success(
                [ExitRequestResponse.model_validate(r) for r in requests]
            )
        except Exception as e:
            return self._handle_exception(e, "list own exit requests", requester_id)

    # -------------------------------------------------------------------------
    # Reviewer operations
    # -------------------------------------------------------------------------

    def review(
        self,
        reviewer_id: str,
        request_id: str,
        decision: Union[ReviewDecision, str],
    ) -> ServiceResult[ExitRequestResponse]:
        """
        Approve or decline a pending request.

        Approval issues the pass credential in the same conditional update
        that sets the status and reviewer fields. Of two concurrent reviews
        only the first is recorded; the other gets INVALID_STATE.
        """
        try:
            decision = self._parse_decision(decision)
            caller = self.identity.authenticate(reviewer_id)
            require_role(
                caller,
                REVIEWER_ROLES,
                error_message="Only hall administrators or super admins may review requests",
            )
            request = self.repository.get_by_id(request_id)
            self._check_hall_scope(caller, request)

            now = utc_now()
            target = (
                ExitRequestStatus.APPROVED
                if decision == ReviewDecision.APPROVE
                else ExitRequestStatus.DECLINED
            )
            patch: Dict[str, Any] = {"reviewed_by": reviewer_id, "reviewed_at": now}
            if target == ExitRequestStatus.APPROVED:
                patch["pass_credential"] = make_pass_credential(
                    self.settings.PASS_CREDENTIAL_PREFIX, request.id, now
                )

            from_status = request.status
            with self.transaction():
                updated = self._transition(request, target, reviewer_id, patch, now)

            self._log_transition(request_id, reviewer_id, from_status, target)
            return ServiceResult.success(
                ExitRequestResponse.model_validate(updated),
                message=f"Exit request {target.value}",
            )
        except Exception as e:
            return self._handle_exception(e, "review exit request", request_id)

    def review_queue(
        self,
        reviewer_id: str,
        status: Union[ExitRequestStatus, str, None] = None,
    ) -> ServiceResult[List[ExitRequestResponse]]:
        """
        Requests visible to a reviewer, newest first.

        With hall-scoped review on, a hall administrator sees only requests
        submitted from their own hall.
        """
        try:
            status_filter = parse_status(status)
            caller = self.identity.authenticate(reviewer_id)
            require_role(caller, REVIEWER_ROLES)

            hall_id = None
            if self._hall_scoped(caller):
                hall_id = caller.hall_id
                if hall_id is None:
                    self._logger.warning(
                        "Hall administrator without a hall has an empty review queue",
                        extra={"actor_id": reviewer_id},
                    )
                    return ServiceResult.success([])

            requests = self.repository.query_by_status(
                [status_filter] if status_filter else None,
                hall_id=hall_id,
            )
            return ServiceResult.success(
                [ExitRequestResponse.model_validate(r) for r in requests]
            )
        except Exception as e:
            return self._handle_exception(e, "load review queue", reviewer_id)

    def get_request(self, principal_id: str, request_id: str) -> ServiceResult[ExitRequestResponse]:
        """Requesters see their own requests; staff roles see any."""
        try:
            caller = self.identity.authenticate(principal_id)
            request = self.repository.get_by_id(request_id)
            if not is_resource_owner(caller, request.requester_id):
                require_role(caller, REQUEST_READER_ROLES)
                self._check_hall_scope(caller, request)
            return ServiceResult.success(ExitRequestResponse.model_validate(request))
        except Exception as e:
            return self._handle_exception(e, "get exit request", request_id)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _hall_scoped(self, caller: AuthenticatedPrincipal) -> bool:
        return self.settings.HALL_SCOPED_REVIEW and caller.role == UserRole.HALL_ADMIN

    def _check_hall_scope(self, caller: AuthenticatedPrincipal, request: ExitRequest) -> None:
        if self._hall_scoped(caller) and (
            caller.hall_id is None or caller.hall_id != request.hall_id
        ):
            raise ForbiddenError(
                "This request belongs to another hall",
                principal_id=caller.principal_id,
            )

    @staticmethod
    def _parse_decision(decision: Union[ReviewDecision, str]) -> ReviewDecision:
        if isinstance(decision, ReviewDecision):
            return decision
        try:
            return ReviewDecision(str(decision).strip().lower())
        except ValueError:
            raise ValidationError(
                "Decision must be 'approve' or 'decline'", field="decision"
            )
