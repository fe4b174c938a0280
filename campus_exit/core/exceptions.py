"""
Custom Exceptions for the Campus Exit Pass Service

This module defines the exception taxonomy shared by the store, the
lifecycle services and the HTTP layer.
"""

from typing import Any, Dict, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for the application"""
    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"

    # Authentication & Authorization
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"

    # Identity
    ROLE_NOT_FOUND = "ROLE_NOT_FOUND"
    PROFILE_NOT_FOUND = "PROFILE_NOT_FOUND"

    # Exit request workflow
    INVALID_STATE = "INVALID_STATE"
    ACTIVE_REQUEST_EXISTS = "ACTIVE_REQUEST_EXISTS"
    HALL_NOT_SET = "HALL_NOT_SET"

    # Store errors
    PRECONDITION_FAILED = "PRECONDITION_FAILED"
    UNIQUE_CONSTRAINT_VIOLATION = "UNIQUE_CONSTRAINT_VIOLATION"
    DATABASE_ERROR = "DATABASE_ERROR"


class BaseAppException(Exception):
    """
    Base exception class for all application exceptions.

    Provides consistent error handling across the application with
    structured error information.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500,
        field: Optional[str] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        self.field = field
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format"""
        return {
            "error": {
                "code": self.error_code.value,
                "message": self.message,
                "field": self.field,
                "details": self.details,
            }
        }

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


# ========================================
# General Application Exceptions
# ========================================

class ValidationError(BaseAppException):
    """Exception raised when input validation fails; reports the first violation"""

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, ErrorCode.VALIDATION_ERROR, details, 422, field=field)


class NotFoundError(BaseAppException):
    """Exception raised when a requested resource is not found"""

    def __init__(
        self,
        resource_type: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
    ):
        if not message:
            message = f"{resource_type} not found"
            if resource_id:
                message += f" (ID: {resource_id})"

        details = {
            "resource_type": resource_type,
            "resource_id": resource_id,
        }
        super().__init__(message, ErrorCode.NOT_FOUND, details, 404)


# ========================================
# Authentication & Authorization
# ========================================

class AuthenticationError(BaseAppException):
    """Exception raised when the caller cannot be authenticated"""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, ErrorCode.UNAUTHORIZED, None, 401)


class ForbiddenError(BaseAppException):
    """Exception raised when a principal or role attempts a mutation it may not perform"""

    def __init__(
        self,
        message: str = "Operation not permitted",
        principal_id: Optional[str] = None,
        required_roles: Optional[list] = None,
    ):
        details: Dict[str, Any] = {}
        if principal_id:
            details["principal_id"] = principal_id
        if required_roles:
            details["required_roles"] = list(required_roles)
        super().__init__(message, ErrorCode.FORBIDDEN, details, 403)


class RoleNotFoundError(BaseAppException):
    """Exception raised when a principal has no role assignment"""

    def __init__(self, principal_id: str):
        super().__init__(
            "Role not found",
            ErrorCode.ROLE_NOT_FOUND,
            {"principal_id": principal_id},
            404,
        )


class ProfileNotFoundError(BaseAppException):
    """Exception raised when a principal's role profile is missing"""

    def __init__(self, principal_id: str, role: Optional[str] = None):
        super().__init__(
            "Profile not found",
            ErrorCode.PROFILE_NOT_FOUND,
            {"principal_id": principal_id, "role": role},
            404,
        )


# ========================================
# Exit Request Workflow
# ========================================

class InvalidStateError(BaseAppException):
    """Exception raised when a transition is attempted from a state that does not permit it"""

    def __init__(
        self,
        message: Optional[str] = None,
        current_status: Optional[str] = None,
        expected_status: Optional[str] = None,
        request_id: Optional[str] = None,
    ):
        if not message:
            message = "Request is not in a state that permits this action"
            if current_status:
                message = f"Request is {current_status}; this action is not permitted"
        details = {
            "request_id": request_id,
            "current_status": current_status,
            "expected_status": expected_status,
        }
        super().__init__(message, ErrorCode.INVALID_STATE, details, 409)


class ActiveRequestExistsError(BaseAppException):
    """Exception raised when a requester already has a pending, approved or exited request"""

    def __init__(self, requester_id: str, active_request_id: Optional[str] = None):
        super().__init__(
            "An active exit request already exists",
            ErrorCode.ACTIVE_REQUEST_EXISTS,
            {"requester_id": requester_id, "active_request_id": active_request_id},
            409,
        )


class HallNotSetError(BaseAppException):
    """Exception raised when a requester submits without a hall affiliation"""

    def __init__(self, requester_id: str):
        super().__init__(
            "Hall affiliation must be set before submitting a request",
            ErrorCode.HALL_NOT_SET,
            {"requester_id": requester_id},
            422,
        )


# ========================================
# Store Exceptions
# ========================================

class RepositoryError(BaseAppException):
    """Exception raised when the record store fails"""

    def __init__(self, message: str = "Database operation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.DATABASE_ERROR, details, 500)


class PreconditionFailedError(BaseAppException):
    """Exception raised when a conditional update finds the record in another state"""

    def __init__(self, entity_id: str, expected_status: str, current_status: Optional[str] = None):
        super().__init__(
            f"Expected status '{expected_status}' but found '{current_status}'",
            ErrorCode.PRECONDITION_FAILED,
            {
                "entity_id": entity_id,
                "expected_status": expected_status,
                "current_status": current_status,
            },
            412,
        )
        self.entity_id = entity_id
        self.expected_status = expected_status
        self.current_status = current_status


class UniqueConstraintViolationError(BaseAppException):
    """Exception raised when an insert or update violates a uniqueness constraint"""

    def __init__(self, resource_type: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            f"{resource_type} violates a uniqueness constraint",
            ErrorCode.UNIQUE_CONSTRAINT_VIOLATION,
            details,
            409,
        )


__all__ = [
    "ErrorCode",
    "BaseAppException",
    "ValidationError",
    "NotFoundError",
    "AuthenticationError",
    "ForbiddenError",
    "RoleNotFoundError",
    "ProfileNotFoundError",
    "InvalidStateError",
    "ActiveRequestExistsError",
    "HallNotSetError",
    "RepositoryError",
    "PreconditionFailedError",
    "UniqueConstraintViolationError",
]
