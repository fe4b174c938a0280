"""
Gate pass verification service.

Gate officers look a pass up by its credential, then record the exit and
the return as two separate steps so a trip in progress stays visible.
"""

from typing import List, Optional

from sqlalchemy.orm import Session

from campus_exit.config.settings import Settings, get_settings
from campus_exit.core.exceptions import NotFoundError, ValidationError
from campus_exit.core.utils import utc_now
from campus_exit.models.base import ExitRequestStatus, UserRole
from campus_exit.models.exit_request import ExitRequest
from campus_exit.repositories.exit_request import ExitRequestRepository
from campus_exit.schemas.exit_request import (
    ExitRequestResponse,
    GateAction,
    PassLookupResponse,
    StatusHistoryEntry,
)
from campus_exit.services.base import BaseService, ServiceResult
from campus_exit.services.common.permissions import GATE_LOOKUP_ROLES, require_role
from campus_exit.services.exit_request.transitions import StatusTransitionMixin
from campus_exit.services.identity import IdentityService

MAX_RECENT_ACTIVITY = 100


def next_gate_action(status: ExitRequestStatus) -> Optional[GateAction]:
    if status == ExitRequestStatus.APPROVED:
        return GateAction.EXIT
    if status == ExitRequestStatus.EXITED:
        return GateAction.RETURN
    return None


class PassVerificationService(StatusTransitionMixin, BaseService[ExitRequestRepository]):
    """Credential lookup and the approved -> exited -> returned gate steps."""

    def __init__(
        self,
        db_session: Session,
        identity_service: Optional[IdentityService] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(ExitRequestRepository(db_session), db_session)
        self.identity = identity_service or IdentityService(db_session)
        self.settings = settings or get_settings()

    def lookup_by_credential(self, officer_id: str, credential: str) -> ServiceResult[PassLookupResponse]:
        """
        Find the request a pass credential was issued to.

        The real status is always returned; ``usable`` tells the officer
        whether any gate action applies.
        """
        try:
            caller = self.identity.authenticate(officer_id)
            require_role(caller, GATE_LOOKUP_ROLES)

            credential = (credential or "").strip()
            if not credential:
                raise ValidationError("Pass credential is required", field="credential")

            request = self.repository.query_by_credential(credential)
            if request is None:
                raise NotFoundError("Pass", message="No exit request matches this pass")

            history = [
                StatusHistoryEntry.model_validate(entry)
                for entry in self.repository.status_history(request.id)
            ]
            return ServiceResult.success(
                PassLookupResponse(
                    request=ExitRequestResponse.model_validate(request),
                    requester_name=request.requester.full_name if request.requester else None,
                    usable=request.is_gate_usable,
                    next_action=next_gate_action(request.status),
                    history=history,
                )
            )
        except Exception as e:
            return self._handle_exception(e, "look up pass", officer_id)

    def mark_exited(self, officer_id: str, request_id: str) -> ServiceResult[ExitRequestResponse]:
        """approved -> exited; records when and by whom."""
        try:
            caller = self.identity.authenticate(officer_id)
            require_role(
                caller,
                [UserRole.SECURITY],
                error_message="Only security officers may record gate exits",
            )
            request = self.repository.get_by_id(request_id)
            now = utc_now()
            updated = self._gate_step(
                request,
                ExitRequestStatus.EXITED,
                officer_id,
                {"exited_at": now, "exit_recorded_by": officer_id},
                now,
            )
            return ServiceResult.success(
                ExitRequestResponse.model_validate(updated),
                message="Exit recorded",
            )
        except Exception as e:
            return self._handle_exception(e, "record exit", request_id)

    def mark_returned(self, officer_id: str, request_id: str) -> ServiceResult[ExitRequestResponse]:
        """exited -> returned; sets the actual return time."""
        try:
            caller = self.identity.authenticate(officer_id)
            require_role(
                caller,
                [UserRole.SECURITY],
                error_message="Only security officers may record gate returns",
            )
            request = self.repository.get_by_id(request_id)
            now = utc_now()
            updated = self._gate_step(
                request,
                ExitRequestStatus.RETURNED,
                officer_id,
                {"actual_return_at": now, "return_recorded_by": officer_id},
                now,
            )
            return ServiceResult.success(
                ExitRequestResponse.model_validate(updated),
                message="Return recorded",
            )
        except Exception as e:
            return self._handle_exception(e, "record return", request_id)

    def recent_gate_activity(
        self,
        officer_id: str,
        limit: Optional[int] = None,
    ) -> ServiceResult[List[ExitRequestResponse]]:
        """Latest exited or returned requests, most recently updated first."""
        try:
            caller = self.identity.authenticate(officer_id)
            require_role(caller, GATE_LOOKUP_ROLES)

            limit = self.settings.RECENT_GATE_ACTIVITY_LIMIT if limit is None else limit
            if limit < 1 or limit > MAX_RECENT_ACTIVITY:
                raise ValidationError(
                    f"Limit must be between 1 and {MAX_RECENT_ACTIVITY}", field="limit"
                )

            requests = self.repository.recent_gate_activity(limit)
            return ServiceResult.success(
                [ExitRequestResponse.model_validate(r) for r in requests]
            )
        except Exception as e:
            return self._handle_exception(e, "load recent gate activity", officer_id)

    def _gate_step(self, request: ExitRequest, target: ExitRequestStatus, officer_id: str, patch, now) -> ExitRequest:
        # Not retried: a lost race means another officer already recorded the step
        from_status = request.status
        with self.transaction():
            updated = self._transition(request, target, officer_id, patch, now)
        self._log_transition(request.id, officer_id, from_status, target)
        return updated
