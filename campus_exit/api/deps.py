"""
FastAPI dependencies: database session, bearer authentication and services.

Example usage in a router:
    @router.get("/me")
    def read_me(
        principal_id: str = Depends(deps.get_current_principal_id),
        identity: IdentityService = Depends(deps.get_identity_service),
    ):
        ...
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from campus_exit.core.exceptions import AuthenticationError
from campus_exit.core.logging import user_id
from campus_exit.core.security import JWTManager, get_jwt_manager
from campus_exit.db.session import get_db
from campus_exit.services import (
    ExitRequestLifecycleService,
    IdentityService,
    OversightService,
    PassVerificationService,
)

# auto_error is off so a missing header gets the standard error envelope
bearer_scheme = HTTPBearer(auto_error=False)


# --- Authentication -----------------------------------------------------------

def get_current_principal_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    jwt_manager: JWTManager = Depends(get_jwt_manager),
) -> str:
    """Principal id from the bearer token's subject."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Missing bearer token")
    principal_id = jwt_manager.get_principal_id(credentials.credentials)
    user_id.set(principal_id)
    return principal_id


# --- Services -----------------------------------------------------------------

def get_identity_service(db: Session = Depends(get_db)) -> IdentityService:
    return IdentityService(db)


def get_lifecycle_service(
    db: Session = Depends(get_db),
    identity: IdentityService = Depends(get_identity_service),
) -> ExitRequestLifecycleService:
    return ExitRequestLifecycleService(db, identity_service=identity)


def get_pass_verification_service(
    db: Session = Depends(get_db),
    identity: IdentityService = Depends(get_identity_service),
) -> PassVerificationService:
    return PassVerificationService(db, identity_service=identity)


def get_oversight_service(
    db: Session = Depends(get_db),
    identity: IdentityService = Depends(get_identity_service),
) -> OversightService:
    return OversightService(db, identity_service=identity)
