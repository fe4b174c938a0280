"""
Conditional status transitions shared by the lifecycle and gate services.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from campus_exit.core.exceptions import InvalidStateError, PreconditionFailedError
from campus_exit.models.base import ALLOWED_TRANSITIONS, ExitRequestStatus, can_transition
from campus_exit.models.exit_request import ExitRequest
from campus_exit.repositories.exit_request import ExitRequestRepository


def pre_state(target: ExitRequestStatus) -> Optional[ExitRequestStatus]:
    """The single status ``target`` may be reached from."""
    for source, targets in ALLOWED_TRANSITIONS.items():
        if target in targets:
            return source
    return None


def invalid_state_from(error: PreconditionFailedError, request_id: str) -> InvalidStateError:
    return InvalidStateError(
        current_status=error.current_status,
        expected_status=error.expected_status,
        request_id=request_id,
    )


class StatusTransitionMixin:
    """
    Requires ``self.repository`` (an ExitRequestRepository) and ``self._logger``.
    """

    repository: ExitRequestRepository

    def _transition(
        self,
        request: ExitRequest,
        target: ExitRequestStatus,
        actor_id: str,
        patch: Dict[str, Any],
        now: datetime,
    ) -> ExitRequest:
        """
        Move ``request`` from its current status to ``target`` and record it.

        Must run inside a transaction; nothing is committed here.

        Raises:
            InvalidStateError: If ``current -> target`` is not an edge, or the
                stored status no longer matches
        """
        expected = request.status
        if not can_transition(expected, target):
            required = pre_state(target)
            raise InvalidStateError(
                current_status=expected.value,
                expected_status=required.value if required else None,
                request_id=request.id,
            )

        full_patch = dict(patch)
        full_patch["status"] = target
        full_patch["updated_at"] = now
        try:
            updated = self.repository.conditional_update(
                request.id, expected, full_patch, commit=False
            )
        except PreconditionFailedError as e:
            raise invalid_state_from(e, request.id) from e

        self.repository.add_status_history(
            request.id,
            from_status=expected,
            to_status=target,
            changed_by=actor_id,
            changed_at=now,
            commit=False,
        )
        return updated

    def _log_transition(
        self,
        request_id: str,
        actor_id: str,
        from_status: Optional[ExitRequestStatus],
        to_status: ExitRequestStatus,
    ) -> None:
        source = from_status.value if from_status else None
        self._logger.info(
            f"Exit request {source or 'new'} -> {to_status.value}",
            extra={
                "exit_request_id": request_id,
                "actor_id": actor_id,
                "from_status": source,
                "to_status": to_status.value,
            },
        )
