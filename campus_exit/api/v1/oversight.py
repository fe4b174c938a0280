"""
Super admin oversight endpoints. Read-only.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from campus_exit.api import deps
from campus_exit.api.errors import unwrap
from campus_exit.schemas.exit_request import ExitRequestResponse
from campus_exit.schemas.oversight import (
    DashboardSummary,
    PrincipalListingItem,
    RequestListingItem,
    RoleCounts,
    StatusCounts,
)
from campus_exit.services.oversight import OversightService

router = APIRouter(prefix="/oversight", tags=["Oversight"])


@router.get("/summary", response_model=DashboardSummary)
def dashboard_summary(
    principal_id: str = Depends(deps.get_current_principal_id),
    oversight: OversightService = Depends(deps.get_oversight_service),
) -> DashboardSummary:
    return unwrap(oversight.dashboard_summary(principal_id))


@router.get("/requests/counts", response_model=StatusCounts)
def request_counts(
    principal_id: str = Depends(deps.get_current_principal_id),
    oversight: OversightService = Depends(deps.get_oversight_service),
) -> StatusCounts:
    return unwrap(oversight.request_counts_by_status(principal_id))


@router.get("/principals/counts", response_model=RoleCounts)
def principal_counts(
    principal_id: str = Depends(deps.get_current_principal_id),
    oversight: OversightService = Depends(deps.get_oversight_service),
) -> RoleCounts:
    return unwrap(oversight.principal_counts_by_role(principal_id))


@router.get("/requests/overdue", response_model=List[ExitRequestResponse])
def overdue_requests(
    principal_id: str = Depends(deps.get_current_principal_id),
    oversight: OversightService = Depends(deps.get_oversight_service),
) -> List[ExitRequestResponse]:
    return unwrap(oversight.overdue_requests(principal_id))


@router.get("/requests", response_model=List[RequestListingItem])
def list_requests(
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    principal_id: str = Depends(deps.get_current_principal_id),
    oversight: OversightService = Depends(deps.get_oversight_service),
) -> List[RequestListingItem]:
    return unwrap(oversight.list_requests(principal_id, status_filter, search))


@router.get("/principals", response_model=List[PrincipalListingItem])
def list_principals(
    role: Optional[str] = Query(None),
    principal_id: str = Depends(deps.get_current_principal_id),
    oversight: OversightService = Depends(deps.get_oversight_service),
) -> List[PrincipalListingItem]:
    return unwrap(oversight.list_principals(principal_id, role))
