"""
Campus Exit Pass Service - Test Configuration and Fixtures
"""
import os
from datetime import timedelta
from typing import Callable, Dict, Generator, Optional

import pytest
from faker import Faker
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

# Set testing environment before the application reads its settings
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite:///:memory:'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['LOG_FORMAT'] = 'text'
os.environ['LOG_LEVEL'] = 'WARNING'

from campus_exit.core.security import get_jwt_manager
from campus_exit.core.utils import utc_now
from campus_exit.db.init_db import init_db
from campus_exit.db.session import build_engine, build_session_factory, get_db
from campus_exit.main import create_app
from campus_exit.models import (
    Hall,
    HallAdminRecord,
    Principal,
    RoleAssignment,
    SecurityRecord,
    StudentRecord,
    SuperAdminRecord,
)
from campus_exit.models.base import UserRole
from campus_exit.services import (
    ExitRequestLifecycleService,
    IdentityService,
    OversightService,
    PassVerificationService,
)

fake = Faker()


# ==================== Database ====================

@pytest.fixture
def engine(tmp_path):
    """File-backed SQLite per test so separate sessions see each other's commits"""
    engine = build_engine(f"sqlite:///{tmp_path / 'campus_exit_test.db'}", echo=False)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def db_session(session_factory) -> Generator[Session, None, None]:
    """Create a fresh database session for each test"""
    session = session_factory()
    yield session
    session.close()


# ==================== Seed data ====================

@pytest.fixture
def halls(db_session: Session) -> Dict[str, Hall]:
    north = Hall(name="North Hall")
    south = Hall(name="South Hall")
    db_session.add_all([north, south])
    db_session.commit()
    return {"north": north, "south": south}


@pytest.fixture
def make_principal(db_session: Session) -> Callable[..., str]:
    """
    Create a principal with an optional role and profile; returns its id.

    ``with_profile=False`` leaves the role without its profile record.
    """

    def _make(
        role: Optional[UserRole],
        hall: Optional[Hall] = None,
        with_profile: bool = True,
        full_name: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> str:
        principal = Principal(
            full_name=full_name or fake.name(),
            email=fake.unique.email(),
        )
        db_session.add(principal)
        db_session.flush()

        if role is not None:
            db_session.add(RoleAssignment(principal_id=principal.id, role=role))

        if role is not None and with_profile:
            hall_id = hall.id if hall else None
            if role == UserRole.STUDENT:
                record = StudentRecord(
                    principal_id=principal.id,
                    student_number=fake.unique.bothify("STU-#####"),
                    phone=phone,
                    hall_id=hall_id,
                )
            elif role == UserRole.HALL_ADMIN:
                record = HallAdminRecord(
                    principal_id=principal.id,
                    staff_number=fake.unique.bothify("STF-#####"),
                    phone=phone,
                    hall_id=hall_id,
                )
            elif role == UserRole.SECURITY:
                record = SecurityRecord(
                    principal_id=principal.id,
                    badge_number=fake.unique.bothify("SEC-#####"),
                    phone=phone,
                )
            else:
                record = SuperAdminRecord(principal_id=principal.id)
            db_session.add(record)

        db_session.commit()
        return principal.id

    return _make


@pytest.fixture
def student(make_principal, halls) -> str:
    return make_principal(UserRole.STUDENT, hall=halls["north"], full_name="Ada Obi")


@pytest.fixture
def other_student(make_principal, halls) -> str:
    return make_principal(UserRole.STUDENT, hall=halls["south"], full_name="Bola Eze")


@pytest.fixture
def student_without_hall(make_principal) -> str:
    return make_principal(UserRole.STUDENT)


@pytest.fixture
def hall_admin(make_principal, halls) -> str:
    return make_principal(UserRole.HALL_ADMIN, hall=halls["north"])


@pytest.fixture
def other_hall_admin(make_principal, halls) -> str:
    return make_principal(UserRole.HALL_ADMIN, hall=halls["south"])


@pytest.fixture
def security_officer(make_principal) -> str:
    return make_principal(UserRole.SECURITY)


@pytest.fixture
def super_admin(make_principal) -> str:
    return make_principal(UserRole.SUPER_ADMIN)


@pytest.fixture
def unassigned(make_principal) -> str:
    return make_principal(None)


# ==================== Drafts ====================

@pytest.fixture
def draft() -> Callable[..., dict]:
    """Valid draft; keyword arguments override fields"""

    def _draft(**overrides) -> dict:
        data = {
            "reason": "Medical appointment",
            "destination": "City Hospital",
            "expected_return_at": utc_now() + timedelta(hours=2),
        }
        data.update(overrides)
        return data

    return _draft


# ==================== Services ====================

@pytest.fixture
def identity_service(db_session: Session) -> IdentityService:
    return IdentityService(db_session)


@pytest.fixture
def lifecycle(db_session: Session) -> ExitRequestLifecycleService:
    return ExitRequestLifecycleService(db_session)


@pytest.fixture
def verification(db_session: Session) -> PassVerificationService:
    return PassVerificationService(db_session)


@pytest.fixture
def oversight(db_session: Session) -> OversightService:
    return OversightService(db_session)


@pytest.fixture
def approved_request(lifecycle, student, hall_admin, draft) -> str:
    """Id of an approved request owned by ``student``"""
    request_id = lifecycle.submit(student, draft()).unwrap().id
    lifecycle.review(hall_admin, request_id, "approve").unwrap()
    return request_id


# ==================== HTTP ====================

@pytest.fixture
def client(session_factory) -> Generator[TestClient, None, None]:
    """Create test client with database override"""
    app = create_app(initialize_database=False)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> Callable[[str], dict]:
    """Bearer headers for a principal id"""
    manager = get_jwt_manager()

    def _headers(principal_id: str) -> dict:
        token = manager.create_access_token(principal_id)
        return {'Authorization': f'Bearer {token}'}

    return _headers
