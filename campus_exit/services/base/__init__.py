from campus_exit.services.base.base_service import BaseService
from campus_exit.services.base.service_result import (
    ErrorCode,
    ErrorSeverity,
    ServiceError,
    ServiceResult,
)

__all__ = [
    "BaseService",
    "ErrorCode",
    "ErrorSeverity",
    "ServiceError",
    "ServiceResult",
]
