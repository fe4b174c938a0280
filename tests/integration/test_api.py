"""
HTTP tests: routing, authentication and the error envelope
"""
from datetime import timedelta

import pytest

from campus_exit.core.security import JWTManager
from campus_exit.core.utils import utc_now

API = "/api/v1"


def _draft(**overrides):
    body = {
        "reason": "Medical appointment",
        "destination": "City Hospital",
        "expected_return_at": (utc_now() + timedelta(hours=2)).isoformat(),
    }
    body.update(overrides)
    return body


def _submit(client, headers, **overrides):
    response = client.post(f"{API}/exit-requests", json=_draft(**overrides), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


# ==================== Health and authentication ====================

def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert "X-Request-ID" in response.headers
    assert "X-Process-Time" in response.headers


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "trace-123"})

    assert response.headers["X-Request-ID"] == "trace-123"


def test_missing_token_is_unauthorized(client):
    response = client.get(f"{API}/me")

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


def test_invalid_token_is_unauthorized(client):
    response = client.get(f"{API}/me", headers={"Authorization": "Bearer not-a-token"})

    assert response.status_code == 401


def test_token_signed_with_other_key_is_rejected(client, student):
    token = JWTManager(secret_key="some-other-secret").create_access_token(student)

    response = client.get(f"{API}/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_expired_token_is_rejected(client, student):
    token = JWTManager().create_access_token(student, expires_delta=timedelta(seconds=-10))

    response = client.get(f"{API}/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Token has expired"


def test_unassigned_principal_has_no_role(client, auth_headers, unassigned):
    response = client.get(f"{API}/me", headers=auth_headers(unassigned))

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "ROLE_NOT_FOUND"


# ==================== Identity ====================

def test_read_me(client, auth_headers, student, halls):
    response = client.get(f"{API}/me", headers=auth_headers(student))

    assert response.status_code == 200
    data = response.json()
    assert data["role"] == "student"
    assert data["full_name"] == "Ada Obi"
    assert data["hall_name"] == "North Hall"
    assert data["role_local_id"].startswith("STU-")


def test_update_profile(client, auth_headers, student, halls):
    response = client.patch(
        f"{API}/me/profile",
        json={"phone": "+2348012345678", "hall_id": halls["south"].id},
        headers=auth_headers(student),
    )

    assert response.status_code == 200
    assert response.json()["hall_name"] == "South Hall"
    assert response.json()["phone"] == "+2348012345678"


def test_update_profile_validation_envelope(client, auth_headers, student):
    response = client.patch(
        f"{API}/me/profile", json={"full_name": "A"}, headers=auth_headers(student)
    )

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["field"] == "full_name"


def test_list_halls(client, auth_headers, security_officer, halls):
    response = client.get(f"{API}/halls", headers=auth_headers(security_officer))

    assert response.status_code == 200
    assert [hall["name"] for hall in response.json()] == ["North Hall", "South Hall"]


# ==================== Exit requests ====================

def test_submit_and_read(client, auth_headers, student):
    created = _submit(client, auth_headers(student), comment="Back by six")

    assert created["status"] == "pending"
    assert created["pass_credential"] is None

    response = client.get(f"{API}/exit-requests/{created['id']}", headers=auth_headers(student))
    assert response.status_code == 200
    assert response.json()["comment"] == "Back by six"

    mine = client.get(f"{API}/exit-requests/mine", headers=auth_headers(student)).json()
    assert [r["id"] for r in mine] == [created["id"]]


def test_submit_reports_first_invalid_field(client, auth_headers, student):
    response = client.post(
        f"{API}/exit-requests",
        json=_draft(reason="hi", destination="x"),
        headers=auth_headers(student),
    )

    assert response.status_code == 422
    assert response.json()["error"]["field"] == "reason"


def test_submit_past_return_time(client, auth_headers, student):
    past = (utc_now() - timedelta(hours=1)).isoformat()

    response = client.post(
        f"{API}/exit-requests", json=_draft(expected_return_at=past), headers=auth_headers(student)
    )

    assert response.status_code == 422
    assert response.json()["error"]["field"] == "expected_return_at"


def test_submit_conflicts_and_hall(client, auth_headers, student, student_without_hall, hall_admin):
    _submit(client, auth_headers(student))

    duplicate = client.post(f"{API}/exit-requests", json=_draft(), headers=auth_headers(student))
    assert duplicate.status_code == 409
    assert duplicate.json()["error"]["code"] == "ACTIVE_REQUEST_EXISTS"

    no_hall = client.post(f"{API}/exit-requests", json=_draft(), headers=auth_headers(student_without_hall))
    assert no_hall.status_code == 422
    assert no_hall.json()["error"]["code"] == "HALL_NOT_SET"

    staff = client.post(f"{API}/exit-requests", json=_draft(), headers=auth_headers(hall_admin))
    assert staff.status_code == 403
    assert staff.json()["error"]["code"] == "FORBIDDEN"


def test_edit_and_withdraw(client, auth_headers, student, other_student):
    created = _submit(client, auth_headers(student))
    url = f"{API}/exit-requests/{created['id']}"

    forbidden = client.put(url, json=_draft(reason="Someone else"), headers=auth_headers(other_student))
    assert forbidden.status_code == 403

    edited = client.put(url, json=_draft(destination="Dental Clinic"), headers=auth_headers(student))
    assert edited.status_code == 200
    assert edited.json()["destination"] == "Dental Clinic"

    withdrawn = client.delete(url, headers=auth_headers(student))
    assert withdrawn.status_code == 204
    assert client.get(url, headers=auth_headers(student)).status_code == 404


def test_review_and_queue(client, auth_headers, student, hall_admin, other_hall_admin, security_officer):
    created = _submit(client, auth_headers(student))
    review_url = f"{API}/exit-requests/{created['id']}/review"

    queue = client.get(
        f"{API}/exit-requests/review-queue", params={"status": "pending"}, headers=auth_headers(hall_admin)
    )
    assert [r["id"] for r in queue.json()] == [created["id"]]

    denied = client.post(review_url, json={"decision": "approve"}, headers=auth_headers(security_officer))
    assert denied.status_code == 403

    approved = client.post(review_url, json={"decision": "approve"}, headers=auth_headers(hall_admin))
    assert approved.status_code == 200
    assert approved.json()["status"] == "approved"
    assert approved.json()["pass_credential"].startswith(f"CEMS-{created['id']}-")

    again = client.post(review_url, json={"decision": "decline"}, headers=auth_headers(other_hall_admin))
    assert again.status_code == 409
    assert again.json()["error"]["code"] == "INVALID_STATE"


def test_review_rejects_unknown_decision(client, auth_headers, student, hall_admin):
    created = _submit(client, auth_headers(student))

    response = client.post(
        f"{API}/exit-requests/{created['id']}/review",
        json={"decision": "perhaps"},
        headers=auth_headers(hall_admin),
    )

    assert response.status_code == 422
    assert response.json()["error"]["field"] == "decision"


# ==================== Gate ====================

def test_gate_cycle(client, auth_headers, student, hall_admin, security_officer):
    created = _submit(client, auth_headers(student))
    approved = client.post(
        f"{API}/exit-requests/{created['id']}/review",
        json={"decision": "approve"},
        headers=auth_headers(hall_admin),
    ).json()
    officer = auth_headers(security_officer)

    lookup = client.get(f"{API}/passes/{approved['pass_credential']}", headers=officer)
    assert lookup.status_code == 200
    assert lookup.json()["usable"] is True
    assert lookup.json()["next_action"] == "exit"

    early_return = client.post(f"{API}/passes/requests/{created['id']}/return", headers=officer)
    assert early_return.status_code == 409

    exited = client.post(f"{API}/passes/requests/{created['id']}/exit", headers=officer)
    assert exited.json()["status"] == "exited"

    returned = client.post(f"{API}/passes/requests/{created['id']}/return", headers=officer)
    assert returned.json()["status"] == "returned"

    recent = client.get(f"{API}/passes/recent", params={"limit": 5}, headers=officer)
    assert [r["id"] for r in recent.json()] == [created["id"]]

    final = client.get(f"{API}/passes/{approved['pass_credential']}", headers=officer).json()
    assert final["usable"] is False
    assert final["next_action"] is None


def test_unknown_pass(client, auth_headers, security_officer):
    response = client.get(f"{API}/passes/CEMS-unknown-0", headers=auth_headers(security_officer))

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


def test_recent_activity_limit_out_of_range(client, auth_headers, security_officer):
    response = client.get(f"{API}/passes/recent", params={"limit": 500}, headers=auth_headers(security_officer))

    assert response.status_code == 422
    assert response.json()["error"]["field"] == "limit"


# ==================== Oversight ====================

def test_oversight_endpoints(client, auth_headers, student, hall_admin, super_admin):
    created = _submit(client, auth_headers(student))
    admin = auth_headers(super_admin)

    counts = client.get(f"{API}/oversight/requests/counts", headers=admin).json()
    assert counts["pending"] == 1
    assert counts["returned"] == 0
    assert counts["total"] == 1

    roles = client.get(f"{API}/oversight/principals/counts", headers=admin).json()
    assert roles["student"] == 1
    assert roles["hall_admin"] == 1
    assert roles["super_admin"] == 1

    listing = client.get(f"{API}/oversight/requests", params={"search": "HOSPITAL"}, headers=admin).json()
    assert [item["id"] for item in listing] == [created["id"]]
    assert listing[0]["requester_name"] == "Ada Obi"

    summary = client.get(f"{API}/oversight/summary", headers=admin).json()
    assert summary["total_requests"] == 1
    assert summary["pending_requests"] == 1

    principals = client.get(f"{API}/oversight/principals", params={"role": "hall_admin"}, headers=admin).json()
    assert [p["id"] for p in principals] == [hall_admin]

    overdue = client.get(f"{API}/oversight/requests/overdue", headers=admin)
    assert overdue.status_code == 200
    assert overdue.json() == []


@pytest.mark.parametrize(
    "path",
    [
        "/oversight/summary",
        "/oversight/requests/counts",
        "/oversight/principals/counts",
        "/oversight/requests/overdue",
        "/oversight/requests",
        "/oversight/principals",
    ],
)
def test_oversight_requires_super_admin(client, auth_headers, hall_admin, path):
    response = client.get(f"{API}{path}", headers=auth_headers(hall_admin))

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"


def test_oversight_invalid_status_filter(client, auth_headers, super_admin):
    response = client.get(
        f"{API}/oversight/requests", params={"status": "gone"}, headers=auth_headers(super_admin)
    )

    assert response.status_code == 422
    assert response.json()["error"]["field"] == "status"
