"""
Current principal: identity, profile editing and halls.
"""
from typing import List

from fastapi import APIRouter, Depends

from campus_exit.api import deps
from campus_exit.api.errors import unwrap
from campus_exit.schemas.identity import HallResponse, ProfileResponse, ProfileUpdate
from campus_exit.services.identity import IdentityService, to_profile_response

router = APIRouter(tags=["Identity"])


@router.get("/me", response_model=ProfileResponse)
def read_me(
    principal_id: str = Depends(deps.get_current_principal_id),
    identity: IdentityService = Depends(deps.get_identity_service),
) -> ProfileResponse:
    principal = unwrap(identity.resolve_principal(principal_id))
    return to_profile_response(principal.profile)


@router.patch("/me/profile", response_model=ProfileResponse)
def update_my_profile(
    changes: ProfileUpdate,
    principal_id: str = Depends(deps.get_current_principal_id),
    identity: IdentityService = Depends(deps.get_identity_service),
) -> ProfileResponse:
    return to_profile_response(unwrap(identity.update_profile(principal_id, changes)))


@router.get("/halls", response_model=List[HallResponse])
def list_halls(
    principal_id: str = Depends(deps.get_current_principal_id),
    identity: IdentityService = Depends(deps.get_identity_service),
) -> List[HallResponse]:
    return unwrap(identity.list_halls())
