"""
Service result patterns for standardized response handling.

Services never raise to their callers; every public operation returns a
``ServiceResult`` carrying either data or a ``ServiceError``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar

from campus_exit.core.exceptions import BaseAppException, ErrorCode


class ErrorSeverity(str, Enum):
    """Error severity levels."""

    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class ServiceError:
    """Represents a service operation error with context."""

    code: ErrorCode
    message: str
    severity: ErrorSeverity = ErrorSeverity.ERROR
    details: Optional[Dict[str, Any]] = None
    field: Optional[str] = None


TData = TypeVar("TData")


@dataclass
class ServiceResult(Generic[TData]):
    """
    Outcome of a service operation.

    Attributes:
        is_success: Operation success indicator
        data: Result data (if successful)
        error: Error information (if failed)
        message: Human-readable status message
    """

    is_success: bool
    data: Optional[TData] = None
    error: Optional[ServiceError] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, data: Optional[TData] = None, message: Optional[str] = None) -> "ServiceResult[TData]":
        return cls(is_success=True, data=data, message=message)

    @classmethod
    def failure(cls, error: ServiceError) -> "ServiceResult[TData]":
        return cls(is_success=False, error=error, message=error.message)

    @classmethod
    def from_app_exception(
        cls,
        exception: BaseAppException,
        severity: ErrorSeverity = ErrorSeverity.WARNING,
    ) -> "ServiceResult[TData]":
        """Create a failed result carrying a domain exception's code and details."""
        return cls.failure(
            ServiceError(
                code=exception.error_code,
                message=exception.message,
                severity=severity,
                details=exception.details,
                field=exception.field,
            )
        )

    @property
    def error_code(self) -> Optional[ErrorCode]:
        return self.error.code if self.error else None

    def unwrap(self) -> TData:
        """
        Return the data of a successful result.

        Raises:
            BaseAppException: Rebuilt from the failure's code, message, field
                and details
        """
        if self.is_success:
            return self.data
        error = self.error
        raise BaseAppException(
            error.message,
            error.code,
            error.details,
            field=error.field,
        )

    def __bool__(self) -> bool:
        return self.is_success

    def __repr__(self) -> str:
        if not self.is_success and self.error:
            return f"ServiceResult(Failure: {self.error.code.value} {self.error.message})"
        return f"ServiceResult(Success: {self.message})" if self.message else "ServiceResult(Success)"


__all__ = [
    "ErrorCode",
    "ErrorSeverity",
    "ServiceError",
    "ServiceResult",
]
