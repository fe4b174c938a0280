"""
Unit tests for role and profile resolution and profile editing
"""
from campus_exit.core.exceptions import ErrorCode, RepositoryError
from campus_exit.models.base import UserRole
from campus_exit.services.identity import IdentityService
from campus_exit.services.identity.profiles import (
    HallAdminProfile,
    SecurityProfile,
    StudentProfile,
    SuperAdminProfile,
    to_profile_response,
)


def test_resolve_role_for_each_role(identity_service, student, hall_admin, security_officer, super_admin):
    """Every seeded principal resolves to exactly its assigned role"""
    assert identity_service.resolve_role(student).data == UserRole.STUDENT
    assert identity_service.resolve_role(hall_admin).data == UserRole.HALL_ADMIN
    assert identity_service.resolve_role(security_officer).data == UserRole.SECURITY
    assert identity_service.resolve_role(super_admin).data == UserRole.SUPER_ADMIN


def test_unassigned_principal_has_no_role(identity_service, unassigned):
    result = identity_service.resolve_role(unassigned)

    assert result.is_success
    assert result.data is None


def test_unknown_principal_has_no_role(identity_service):
    assert identity_service.resolve_role("no-such-principal").data is None


def test_role_lookup_fails_closed_on_store_error(identity_service, student, monkeypatch):
    """A store failure is never mistaken for a role"""

    def broken(principal_id):
        raise RepositoryError("connection lost")

    monkeypatch.setattr(identity_service.repository, "get_role", broken)

    assert identity_service.lookup_role(student) is None
    result = identity_service.resolve_principal(student)
    assert result.error_code == ErrorCode.ROLE_NOT_FOUND


def test_student_profile_carries_hall(identity_service, student, halls):
    profile = identity_service.resolve_profile(student, UserRole.STUDENT).unwrap()

    assert isinstance(profile, StudentProfile)
    assert profile.role == UserRole.STUDENT
    assert profile.full_name == "Ada Obi"
    assert profile.hall_id == halls["north"].id
    assert profile.hall_name == "North Hall"
    assert profile.role_local_id == profile.student_number


def test_profiles_are_role_specific(identity_service, hall_admin, security_officer, super_admin):
    admin = identity_service.resolve_profile(hall_admin, UserRole.HALL_ADMIN).unwrap()
    officer = identity_service.resolve_profile(security_officer, UserRole.SECURITY).unwrap()
    root = identity_service.resolve_profile(super_admin, UserRole.SUPER_ADMIN).unwrap()

    assert isinstance(admin, HallAdminProfile)
    assert isinstance(officer, SecurityProfile)
    assert isinstance(root, SuperAdminProfile)
    assert not hasattr(officer, "hall_id")
    assert not hasattr(root, "phone")
    assert root.role_local_id is None


def test_profile_for_wrong_role_is_not_found(identity_service, student):
    result = identity_service.resolve_profile(student, UserRole.SECURITY)

    assert not result.is_success
    assert result.error_code == ErrorCode.PROFILE_NOT_FOUND


def test_role_without_profile_record(identity_service, make_principal):
    principal_id = make_principal(UserRole.SECURITY, with_profile=False)

    result = identity_service.resolve_principal(principal_id)

    assert result.error_code == ErrorCode.PROFILE_NOT_FOUND


def test_resolve_principal_unassigned(identity_service, unassigned):
    result = identity_service.resolve_principal(unassigned)

    assert result.error_code == ErrorCode.ROLE_NOT_FOUND


def test_profile_response_omits_missing_fields(identity_service, super_admin):
    profile = identity_service.resolve_profile(super_admin, UserRole.SUPER_ADMIN).unwrap()
    response = to_profile_response(profile)

    assert response.role == UserRole.SUPER_ADMIN
    assert response.phone is None
    assert response.hall_id is None
    assert response.role_local_id is None


# ==================== Profile editing ====================

def test_student_updates_name_phone_and_hall(identity_service, student, halls):
    result = identity_service.update_profile(
        student,
        {"full_name": "Ada N. Obi", "phone": "+234 801 234 5678", "hall_id": halls["south"].id},
    )

    profile = result.unwrap()
    assert profile.full_name == "Ada N. Obi"
    assert profile.phone == "+234 801 234 5678"
    assert profile.hall_id == halls["south"].id
    assert profile.hall_name == "South Hall"


def test_omitted_fields_are_unchanged(identity_service, student, halls):
    profile = identity_service.update_profile(student, {"phone": "08012345678"}).unwrap()

    assert profile.full_name == "Ada Obi"
    assert profile.hall_id == halls["north"].id


def test_invalid_phone_is_rejected(identity_service, student):
    result = identity_service.update_profile(student, {"phone": "call me"})

    assert result.error_code == ErrorCode.VALIDATION_ERROR
    assert result.error.field == "phone"


def test_unknown_hall_is_not_found(identity_service, student):
    result = identity_service.update_profile(student, {"hall_id": "missing-hall"})

    assert result.error_code == ErrorCode.NOT_FOUND


def test_hall_admin_cannot_change_assigned_hall(identity_service, hall_admin, halls):
    result = identity_service.update_profile(hall_admin, {"hall_id": halls["south"].id})

    assert result.error_code == ErrorCode.FORBIDDEN


def test_hall_admin_same_hall_is_accepted(identity_service, hall_admin, halls):
    result = identity_service.update_profile(hall_admin, {"hall_id": halls["north"].id})

    assert result.is_success
    assert result.data.hall_id == halls["north"].id


def test_hall_admin_without_hall_may_set_one(identity_service, make_principal, halls):
    admin_id = make_principal(UserRole.HALL_ADMIN)

    profile = identity_service.update_profile(admin_id, {"hall_id": halls["south"].id}).unwrap()

    assert profile.hall_id == halls["south"].id
    assert profile.hall_name == "South Hall"


def test_security_has_no_hall(identity_service, security_officer, halls):
    result = identity_service.update_profile(security_officer, {"hall_id": halls["north"].id})

    assert result.error_code == ErrorCode.VALIDATION_ERROR
    assert result.error.field == "hall_id"


def test_super_admin_has_no_phone(identity_service, super_admin):
    result = identity_service.update_profile(super_admin, {"phone": "08012345678"})

    assert result.error_code == ErrorCode.VALIDATION_ERROR
    assert result.error.field == "phone"


def test_super_admin_may_rename(identity_service, super_admin):
    profile = identity_service.update_profile(super_admin, {"full_name": "Chief Warden"}).unwrap()

    assert profile.full_name == "Chief Warden"


def _stored_profile(session_factory, principal_id, role):
    session = session_factory()
    try:
        return IdentityService(session).load_profile(principal_id, role)
    finally:
        session.close()


def test_rejected_update_is_not_committed_later(
    identity_service, lifecycle, session_factory, hall_admin, student, halls, draft
):
    original = _stored_profile(session_factory, hall_admin, UserRole.HALL_ADMIN)

    result = identity_service.update_profile(
        hall_admin, {"full_name": "Renamed Admin", "phone": "08011112222", "hall_id": halls["south"].id}
    )
    assert result.error_code == ErrorCode.FORBIDDEN

    # Any later commit on the same session must not carry the rejected edits
    lifecycle.submit(student, draft()).unwrap()

    stored = _stored_profile(session_factory, hall_admin, UserRole.HALL_ADMIN)
    assert stored.full_name == original.full_name
    assert stored.phone == original.phone
    assert stored.hall_id == halls["north"].id


def test_rejected_phone_discards_rename(identity_service, session_factory, super_admin, student, halls):
    original = _stored_profile(session_factory, super_admin, UserRole.SUPER_ADMIN)

    result = identity_service.update_profile(super_admin, {"full_name": "Chief Warden", "phone": "08012345678"})
    assert result.error.field == "phone"

    identity_service.update_profile(student, {"hall_id": halls["south"].id}).unwrap()

    assert _stored_profile(session_factory, super_admin, UserRole.SUPER_ADMIN).full_name == original.full_name


def test_unassigned_cannot_edit_profile(identity_service, unassigned):
    result = identity_service.update_profile(unassigned, {"full_name": "Nobody"})

    assert result.error_code == ErrorCode.ROLE_NOT_FOUND


def test_list_halls_by_name(db_session, halls):
    names = [hall.name for hall in IdentityService(db_session).list_halls().unwrap()]

    assert names == ["North Hall", "South Hall"]
