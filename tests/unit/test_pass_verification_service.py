"""
Unit tests for gate pass lookup and the exit/return steps
"""
import pytest

from campus_exit.config.settings import Settings
from campus_exit.core.exceptions import ErrorCode
from campus_exit.models.base import ExitRequestStatus, UserRole
from campus_exit.schemas.exit_request import GateAction
from campus_exit.services import PassVerificationService


def _credential(lifecycle, request_id, principal_id):
    return lifecycle.get_request(principal_id, request_id).unwrap().pass_credential


def test_approved_pass_is_usable(lifecycle, verification, student, security_officer, approved_request):
    credential = _credential(lifecycle, approved_request, student)

    lookup = verification.lookup_by_credential(security_officer, credential).unwrap()

    assert lookup.request.id == approved_request
    assert lookup.request.status == ExitRequestStatus.APPROVED
    assert lookup.requester_name == "Ada Obi"
    assert lookup.usable is True
    assert lookup.next_action == GateAction.EXIT
    assert [h.to_status for h in lookup.history] == [
        ExitRequestStatus.PENDING,
        ExitRequestStatus.APPROVED,
    ]


def test_full_gate_cycle(lifecycle, verification, student, security_officer, approved_request):
    """approved -> exited -> returned, with who and when recorded"""
    credential = _credential(lifecycle, approved_request, student)

    exited = verification.mark_exited(security_officer, approved_request).unwrap()
    assert exited.status == ExitRequestStatus.EXITED
    assert exited.exit_recorded_by == security_officer
    assert exited.exited_at is not None

    lookup = verification.lookup_by_credential(security_officer, credential).unwrap()
    assert lookup.usable is True
    assert lookup.next_action == GateAction.RETURN

    returned = verification.mark_returned(security_officer, approved_request).unwrap()
    assert returned.status == ExitRequestStatus.RETURNED
    assert returned.return_recorded_by == security_officer
    assert returned.actual_return_at >= returned.exited_at
    assert returned.pass_credential == credential

    final = verification.lookup_by_credential(security_officer, credential).unwrap()
    assert final.usable is False
    assert final.next_action is None
    assert final.request.status == ExitRequestStatus.RETURNED
    assert len(final.history) == 4


def test_returned_request_is_terminal(verification, security_officer, approved_request):
    verification.mark_exited(security_officer, approved_request).unwrap()
    verification.mark_returned(security_officer, approved_request).unwrap()

    assert verification.mark_exited(security_officer, approved_request).error_code == ErrorCode.INVALID_STATE
    assert verification.mark_returned(security_officer, approved_request).error_code == ErrorCode.INVALID_STATE


def test_double_exit_is_invalid_state(verification, security_officer, approved_request):
    verification.mark_exited(security_officer, approved_request).unwrap()

    result = verification.mark_exited(security_officer, approved_request)

    assert result.error_code == ErrorCode.INVALID_STATE
    assert result.error.details["current_status"] == "exited"


def test_return_before_exit_is_invalid_state(verification, security_officer, approved_request):
    result = verification.mark_returned(security_officer, approved_request)

    assert result.error_code == ErrorCode.INVALID_STATE
    assert result.error.details["expected_status"] == "exited"


def test_pending_request_cannot_exit(lifecycle, verification, student, security_officer, draft):
    request = lifecycle.submit(student, draft()).unwrap()

    result = verification.mark_exited(security_officer, request.id)

    assert result.error_code == ErrorCode.INVALID_STATE


@pytest.mark.parametrize("role_fixture", ["student", "hall_admin", "super_admin"])
def test_only_security_marks_gate_steps(request, verification, approved_request, role_fixture):
    principal_id = request.getfixturevalue(role_fixture)

    assert verification.mark_exited(principal_id, approved_request).error_code == ErrorCode.FORBIDDEN


def test_lookup_unknown_credential(verification, security_officer):
    result = verification.lookup_by_credential(security_officer, "CEMS-nope-0")

    assert result.error_code == ErrorCode.NOT_FOUND


def test_lookup_blank_credential(verification, security_officer):
    result = verification.lookup_by_credential(security_officer, "   ")

    assert result.error_code == ErrorCode.VALIDATION_ERROR
    assert result.error.field == "credential"


def test_lookup_trims_credential(lifecycle, verification, student, security_officer, approved_request):
    credential = _credential(lifecycle, approved_request, student)

    result = verification.lookup_by_credential(security_officer, f"  {credential}\n")

    assert result.is_success


def test_super_admin_may_look_up(lifecycle, verification, student, super_admin, approved_request):
    credential = _credential(lifecycle, approved_request, student)

    assert verification.lookup_by_credential(super_admin, credential).is_success


@pytest.mark.parametrize("role_fixture", ["student", "hall_admin"])
def test_lookup_forbidden_for_other_roles(request, lifecycle, verification, student, approved_request, role_fixture):
    credential = _credential(lifecycle, approved_request, student)
    principal_id = request.getfixturevalue(role_fixture)

    assert verification.lookup_by_credential(principal_id, credential).error_code == ErrorCode.FORBIDDEN


# ==================== Recent gate activity ====================

def test_recent_activity_lists_gate_movements(
    lifecycle, verification, make_principal, halls, hall_admin, security_officer, draft
):
    ids = []
    for _ in range(3):
        student_id = make_principal(UserRole.STUDENT, hall=halls["north"])
        request = lifecycle.submit(student_id, draft()).unwrap()
        lifecycle.review(hall_admin, request.id, "approve").unwrap()
        verification.mark_exited(security_officer, request.id).unwrap()
        ids.append(request.id)
    verification.mark_returned(security_officer, ids[0]).unwrap()

    # A request that never reached the gate is not listed
    idle = lifecycle.submit(make_principal(UserRole.STUDENT, hall=halls["north"]), draft()).unwrap()

    activity = verification.recent_gate_activity(security_officer).unwrap()

    assert [r.id for r in activity] == [ids[0], ids[2], ids[1]]
    assert idle.id not in {r.id for r in activity}
    assert len(verification.recent_gate_activity(security_officer, limit=2).unwrap()) == 2


def test_recent_activity_default_limit(db_session, make_principal, halls, lifecycle, hall_admin, security_officer, draft):
    service = PassVerificationService(db_session, settings=Settings(RECENT_GATE_ACTIVITY_LIMIT=1))
    for _ in range(2):
        student_id = make_principal(UserRole.STUDENT, hall=halls["north"])
        request = lifecycle.submit(student_id, draft()).unwrap()
        lifecycle.review(hall_admin, request.id, "approve").unwrap()
        service.mark_exited(security_officer, request.id).unwrap()

    assert len(service.recent_gate_activity(security_officer).unwrap()) == 1


@pytest.mark.parametrize("limit", [0, -1, 101])
def test_recent_activity_limit_bounds(verification, security_officer, limit):
    result = verification.recent_gate_activity(security_officer, limit=limit)

    assert result.error_code == ErrorCode.VALIDATION_ERROR
    assert result.error.field == "limit"


def test_recent_activity_forbidden_for_students(verification, student):
    assert verification.recent_gate_activity(student).error_code == ErrorCode.FORBIDDEN
