"""
Exit request endpoints: submission, requester edits, review.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from campus_exit.api import deps
from campus_exit.api.errors import unwrap
from campus_exit.schemas.exit_request import (
    ExitRequestDraft,
    ExitRequestResponse,
    ReviewRequest,
)
from campus_exit.services.exit_request import ExitRequestLifecycleService

router = APIRouter(prefix="/exit-requests", tags=["Exit Requests"])


@router.post("", response_model=ExitRequestResponse, status_code=status.HTTP_201_CREATED)
def submit_exit_request(
    draft: ExitRequestDraft,
    principal_id: str = Depends(deps.get_current_principal_id),
    lifecycle: ExitRequestLifecycleService = Depends(deps.get_lifecycle_service),
) -> ExitRequestResponse:
    return unwrap(lifecycle.submit(principal_id, draft))


# Fixed paths are declared before /{request_id} so they are not captured by it

@router.get("/mine", response_model=List[ExitRequestResponse])
def list_my_exit_requests(
    principal_id: str = Depends(deps.get_current_principal_id),
    lifecycle: ExitRequestLifecycleService = Depends(deps.get_lifecycle_service),
) -> List[ExitRequestResponse]:
    return unwrap(lifecycle.list_own_requests(principal_id))


@router.get("/review-queue", response_model=List[ExitRequestResponse])
def review_queue(
    status_filter: Optional[str] = Query(None, alias="status"),
    principal_id: str = Depends(deps.get_current_principal_id),
    lifecycle: ExitRequestLifecycleService = Depends(deps.get_lifecycle_service),
) -> List[ExitRequestResponse]:
    return unwrap(lifecycle.review_queue(principal_id, status_filter))


@router.get("/{request_id}", response_model=ExitRequestResponse)
def get_exit_request(
    request_id: str,
    principal_id: str = Depends(deps.get_current_principal_id),
    lifecycle: ExitRequestLifecycleService = Depends(deps.get_lifecycle_service),
) -> ExitRequestResponse:
    return unwrap(lifecycle.get_request(principal_id, request_id))


@router.put("/{request_id}", response_model=ExitRequestResponse)
def edit_exit_request(
    request_id: str,
    draft: ExitRequestDraft,
    principal_id: str = Depends(deps.get_current_principal_id),
    lifecycle: ExitRequestLifecycleService = Depends(deps.get_lifecycle_service),
) -> ExitRequestResponse:
    return unwrap(lifecycle.edit(principal_id, request_id, draft))


@router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
def withdraw_exit_request(
    request_id: str,
    principal_id: str = Depends(deps.get_current_principal_id),
    lifecycle: ExitRequestLifecycleService = Depends(deps.get_lifecycle_service),
) -> Response:
    unwrap(lifecycle.withdraw(principal_id, request_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{request_id}/review", response_model=ExitRequestResponse)
def review_exit_request(
    request_id: str,
    body: ReviewRequest,
    principal_id: str = Depends(deps.get_current_principal_id),
    lifecycle: ExitRequestLifecycleService = Depends(deps.get_lifecycle_service),
) -> ExitRequestResponse:
    return unwrap(lifecycle.review(principal_id, request_id, body.decision))
