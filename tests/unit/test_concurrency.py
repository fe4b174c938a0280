"""
Interleaved writers on separate sessions.

Each session stands in for a concurrent caller: both observe the same
pre-state, then write one after the other. Exactly one write may win.
"""
import pytest

from campus_exit.core.exceptions import ErrorCode
from campus_exit.models.base import ExitRequestStatus, UserRole
from campus_exit.repositories.exit_request import ExitRequestRepository
from campus_exit.services import ExitRequestLifecycleService, PassVerificationService


@pytest.fixture
def sessions(session_factory):
    first, second = session_factory(), session_factory()
    yield first, second
    first.close()
    second.close()


def _status(session_factory, request_id):
    session = session_factory()
    try:
        return ExitRequestRepository(session).get_by_id(request_id).status
    finally:
        session.close()


def test_interleaved_reviews_record_one_decision(
    sessions, session_factory, lifecycle, student, hall_admin, other_hall_admin, draft
):
    request_id = lifecycle.submit(student, draft()).unwrap().id
    session_a, session_b = sessions

    # Both reviewers see the request as pending
    assert ExitRequestRepository(session_a).get_by_id(request_id).status == ExitRequestStatus.PENDING
    assert ExitRequestRepository(session_b).get_by_id(request_id).status == ExitRequestStatus.PENDING

    first = ExitRequestLifecycleService(session_a).review(hall_admin, request_id, "approve")
    second = ExitRequestLifecycleService(session_b).review(other_hall_admin, request_id, "decline")

    assert first.is_success
    assert second.error_code == ErrorCode.INVALID_STATE
    assert _status(session_factory, request_id) == ExitRequestStatus.APPROVED


def test_losing_review_leaves_no_history(
    sessions, session_factory, lifecycle, student, hall_admin, other_hall_admin, draft
):
    request_id = lifecycle.submit(student, draft()).unwrap().id
    session_a, session_b = sessions
    ExitRequestRepository(session_b).get_by_id(request_id)

    ExitRequestLifecycleService(session_a).review(hall_admin, request_id, "decline").unwrap()
    ExitRequestLifecycleService(session_b).review(other_hall_admin, request_id, "approve")

    session = session_factory()
    try:
        history = ExitRequestRepository(session).status_history(request_id)
        request = ExitRequestRepository(session).get_by_id(request_id)
    finally:
        session.close()
    assert [h.to_status for h in history] == [ExitRequestStatus.PENDING, ExitRequestStatus.DECLINED]
    assert request.pass_credential is None
    assert request.reviewed_by == hall_admin


def test_interleaved_exits_record_one_exit(
    sessions, session_factory, approved_request, make_principal, security_officer
):
    second_officer = make_principal(UserRole.SECURITY)
    session_a, session_b = sessions
    ExitRequestRepository(session_a).get_by_id(approved_request)
    ExitRequestRepository(session_b).get_by_id(approved_request)

    first = PassVerificationService(session_a).mark_exited(security_officer, approved_request)
    second = PassVerificationService(session_b).mark_exited(second_officer, approved_request)

    assert first.is_success
    assert second.error_code == ErrorCode.INVALID_STATE
    assert first.data.exit_recorded_by == security_officer


def test_edit_racing_review_is_invalid_state(
    sessions, session_factory, lifecycle, student, hall_admin, draft
):
    request_id = lifecycle.submit(student, draft(reason="Original reason")).unwrap().id
    session_a, session_b = sessions
    ExitRequestRepository(session_b).get_by_id(request_id)

    ExitRequestLifecycleService(session_a).review(hall_admin, request_id, "approve").unwrap()
    result = ExitRequestLifecycleService(session_b).edit(student, request_id, draft(reason="Changed reason"))

    assert result.error_code == ErrorCode.INVALID_STATE
    session = session_factory()
    try:
        assert ExitRequestRepository(session).get_by_id(request_id).reason == "Original reason"
    finally:
        session.close()


def test_withdraw_racing_review_keeps_request(
    sessions, session_factory, lifecycle, student, hall_admin, draft
):
    request_id = lifecycle.submit(student, draft()).unwrap().id
    session_a, session_b = sessions
    ExitRequestRepository(session_b).get_by_id(request_id)

    ExitRequestLifecycleService(session_a).review(hall_admin, request_id, "approve").unwrap()
    result = ExitRequestLifecycleService(session_b).withdraw(student, request_id)

    assert result.error_code == ErrorCode.INVALID_STATE
    assert _status(session_factory, request_id) == ExitRequestStatus.APPROVED


def test_racing_submissions_leave_one_active_request(sessions, student, draft, monkeypatch):
    session_a, session_b = sessions
    service_a = ExitRequestLifecycleService(session_a)
    service_b = ExitRequestLifecycleService(session_b)
    # Second caller's pre-check ran before the first insert landed
    monkeypatch.setattr(service_b.repository, "find_active_for_requester", lambda requester_id: None)

    first = service_a.submit(student, draft())
    second = service_b.submit(student, draft(reason="Concurrent errand"))

    assert first.is_success
    assert second.error_code == ErrorCode.ACTIVE_REQUEST_EXISTS
    assert len(ExitRequestRepository(session_a).query_by_requester(student)) == 1
