"""
HTTP mapping of service failures and exception handlers.

Every error leaves the API as ``{"error": {code, message, field, details}}``.
"""

from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from campus_exit.core.exceptions import BaseAppException, ErrorCode
from campus_exit.core.logging import get_logger
from campus_exit.services.base import ServiceResult
from campus_exit.services.common.validation import first_error

logger = get_logger(__name__)

STATUS_BY_CODE: Dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: 422,
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.PROFILE_NOT_FOUND: 404,
    ErrorCode.ROLE_NOT_FOUND: 404,
    ErrorCode.INVALID_STATE: 409,
    ErrorCode.ACTIVE_REQUEST_EXISTS: 409,
    ErrorCode.PRECONDITION_FAILED: 409,
    ErrorCode.UNIQUE_CONSTRAINT_VIOLATION: 409,
    ErrorCode.HALL_NOT_SET: 422,
    ErrorCode.DATABASE_ERROR: 500,
    ErrorCode.INTERNAL_ERROR: 500,
}


def unwrap(result: ServiceResult) -> Any:
    """Data of a successful result; a failure is raised for the exception handler."""
    return result.unwrap()


def error_body(code: ErrorCode, message: str, field=None, details=None) -> Dict[str, Any]:
    return {
        "error": {
            "code": code.value,
            "message": message,
            "field": field,
            "details": details or {},
        }
    }


async def app_exception_handler(request: Request, exc: BaseAppException) -> JSONResponse:
    return JSONResponse(
        status_code=STATUS_BY_CODE.get(exc.error_code, exc.status_code),
        content=exc.to_dict(),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report only the first violation, like the service layer does."""
    field, message = first_error(exc.errors())
    return JSONResponse(
        status_code=422,
        content=error_body(ErrorCode.VALIDATION_ERROR, message, field),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled error: {exc}",
        exc_info=True,
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=500,
        content=error_body(ErrorCode.INTERNAL_ERROR, "Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BaseAppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
