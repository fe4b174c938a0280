"""
Shared service plumbing: one repository, one session, ServiceResult errors.
"""

from contextlib import contextmanager
from typing import Any, Dict, Generic, Optional, TypeVar

from sqlalchemy.orm import Session

from campus_exit.core.exceptions import BaseAppException, ErrorCode, RepositoryError
from campus_exit.core.logging import get_logger
from campus_exit.repositories.base.base_repository import BaseRepository
from campus_exit.services.base.service_result import (
    ErrorSeverity,
    ServiceError,
    ServiceResult,
)

TRepo = TypeVar("TRepo", bound=BaseRepository)


class BaseService(Generic[TRepo]):
    """
    Base for the identity, lifecycle, gate and oversight services.

    Public operations catch everything and hand it to ``_handle_exception``
    so callers only ever see a ServiceResult.
    """

    def __init__(self, repository: TRepo, db_session: Session):
        self.repository: TRepo = repository
        self.db: Session = db_session
        self._logger = get_logger(f"campus_exit.services.{self.__class__.__name__}")

    # -------------------------------------------------------------------------
    # Errors
    # -------------------------------------------------------------------------

    def _handle_exception(
        self,
        exception: Exception,
        operation: str,
        entity_ref: Optional[Any] = None,
        additional_context: Optional[Dict[str, Any]] = None,
    ) -> ServiceResult:
        """
        Turn ``exception`` into a failed ServiceResult.

        Rejections (forbidden, invalid state, validation and the like) keep
        their error code and log at warning. Store failures and anything
        unexpected log with traceback and surface as INTERNAL_ERROR, so no
        database detail leaks to the caller.
        """
        context = {
            "operation": operation,
            "entity_ref": str(entity_ref) if entity_ref is not None else None,
            "exception_type": type(exception).__name__,
            **(additional_context or {}),
        }

        if isinstance(exception, BaseAppException) and not isinstance(exception, RepositoryError):
            self._logger.warning(
                f"Rejected {operation}: {exception.message}",
                extra={**context, "error_code": exception.error_code.value},
            )
            return ServiceResult.from_app_exception(exception)

        self._logger.error(f"{operation} failed: {exception}", exc_info=True, extra=context)
        return ServiceResult.failure(
            ServiceError(
                code=ErrorCode.INTERNAL_ERROR,
                message=f"Failed to {operation}",
                details={"entity_ref": context["entity_ref"]},
                severity=ErrorSeverity.CRITICAL,
            )
        )

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self):
        """
        Commit the writes staged in the block, or roll all of them back.

            with self.transaction():
                self.repository.conditional_update(..., commit=False)
                self.repository.add_status_history(..., commit=False)
        """
        try:
            yield self.db
            self.repository.commit()
        except Exception:
            self._rollback()
            raise

    def _rollback(self) -> None:
        try:
            self.repository.rollback()
        except Exception as e:
            # The original error is the one worth raising
            self._logger.warning(f"Rollback failed: {e}")

    def _log_operation(
        self,
        operation: str,
        entity_ref: Optional[Any] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = {"operation": operation, **(extra or {})}
        if entity_ref is not None:
            context["entity_ref"] = str(entity_ref)
        self._logger.info(f"{operation} completed", extra=context)
