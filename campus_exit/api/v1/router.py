"""
API v1 Router - Main Entry Point
Aggregates all v1 API endpoints for the exit pass service
"""
from fastapi import APIRouter

from campus_exit.api.v1 import exit_requests, me, oversight, passes

router = APIRouter(
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
        404: {"description": "Not Found"},
        409: {"description": "Conflict"},
        422: {"description": "Validation Error"},
        500: {"description": "Internal Server Error"},
    }
)

router.include_router(me.router)
router.include_router(exit_requests.router)
router.include_router(passes.router)
router.include_router(oversight.router)
