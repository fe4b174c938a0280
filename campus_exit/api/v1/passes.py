"""
Gate endpoints: pass lookup and exit/return recording.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from campus_exit.api import deps
from campus_exit.api.errors import unwrap
from campus_exit.schemas.exit_request import ExitRequestResponse, PassLookupResponse
from campus_exit.services.exit_request import PassVerificationService

router = APIRouter(prefix="/passes", tags=["Gate"])


@router.get("/recent", response_model=List[ExitRequestResponse])
def recent_gate_activity(
    limit: Optional[int] = Query(None),
    principal_id: str = Depends(deps.get_current_principal_id),
    verification: PassVerificationService = Depends(deps.get_pass_verification_service),
) -> List[ExitRequestResponse]:
    return unwrap(verification.recent_gate_activity(principal_id, limit))


@router.post("/requests/{request_id}/exit", response_model=ExitRequestResponse)
def mark_exited(
    request_id: str,
    principal_id: str = Depends(deps.get_current_principal_id),
    verification: PassVerificationService = Depends(deps.get_pass_verification_service),
) -> ExitRequestResponse:
    return unwrap(verification.mark_exited(principal_id, request_id))


@router.post("/requests/{request_id}/return", response_model=ExitRequestResponse)
def mark_returned(
    request_id: str,
    principal_id: str = Depends(deps.get_current_principal_id),
    verification: PassVerificationService = Depends(deps.get_pass_verification_service),
) -> ExitRequestResponse:
    return unwrap(verification.mark_returned(principal_id, request_id))


@router.get("/{credential}", response_model=PassLookupResponse)
def lookup_pass(
    credential: str,
    principal_id: str = Depends(deps.get_current_principal_id),
    verification: PassVerificationService = Depends(deps.get_pass_verification_service),
) -> PassLookupResponse:
    return unwrap(verification.lookup_by_credential(principal_id, credential))
