"""
Base repository with CRUD operations, commit handling and error mapping.

Provides the foundation for domain repositories, including the
conditional (compare-and-set) writes the exit request workflow relies on.
"""

from typing import Any, Dict, Generic, Optional, Type, TypeVar

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from campus_exit.core.exceptions import (
    NotFoundError,
    PreconditionFailedError,
    RepositoryError,
    UniqueConstraintViolationError,
)
from campus_exit.core.logging import get_logger
from campus_exit.models.base import BaseModel

logger = get_logger(__name__)

# Type variable for model classes
ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with standardized operations.

    Provides CRUD operations, conditional writes and error mapping
    for all domain repositories.
    """

    def __init__(self, model: Type[ModelType], db: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    # ==================== Transaction Management ====================

    def commit(self):
        """Commit current transaction."""
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise UniqueConstraintViolationError(self.model.__name__, {"error": str(e.orig)}) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError(f"Commit failed: {str(e)}") from e

    def rollback(self):
        """Rollback current transaction."""
        self.db.rollback()

    # ==================== Create Operations ====================

    def create(
        self,
        entity: ModelType,
        commit: bool = True
    ) -> ModelType:
        """
        Insert a new entity.

        Args:
            entity: Entity to create
            commit: Whether to commit immediately

        Returns:
            Created entity

        Raises:
            UniqueConstraintViolationError: If a uniqueness constraint rejects the row
            RepositoryError: On any other database failure
        """
        try:
            self.db.add(entity)

            if commit:
                self.db.commit()
            else:
                self.db.flush()

            logger.info(f"Created {self.model.__name__} with id: {entity.id}")
            return entity

        except IntegrityError as e:
            self.db.rollback()
            raise UniqueConstraintViolationError(
                self.model.__name__, {"error": str(e.orig)}
            ) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError(f"Create failed: {str(e)}") from e

    # ==================== Read Operations ====================

    def find_by_id(self, id: str) -> Optional[ModelType]:
        """
        Find entity by ID.

        Returns:
            Entity or None
        """
        try:
            return self.db.get(self.model, id)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Find by ID failed: {str(e)}") from e

    def get_by_id(self, id: str) -> ModelType:
        """
        Get entity by ID or raise exception.

        Raises:
            NotFoundError: If entity not found
        """
        entity = self.find_by_id(id)
        if entity is None:
            raise NotFoundError(self.model.__name__, str(id))
        return entity

    def refresh(self, id: str) -> ModelType:
        """Reload an entity from the database, bypassing the identity map."""
        try:
            entity = self.db.get(self.model, id, populate_existing=True)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Refresh failed: {str(e)}") from e
        if entity is None:
            raise NotFoundError(self.model.__name__, str(id))
        return entity

    # ==================== Conditional Writes ====================

    def conditional_update(
        self,
        id: str,
        expected_status: Any,
        patch: Dict[str, Any],
        commit: bool = True,
        state_field: str = "status",
    ) -> ModelType:
        """
        Apply ``patch`` only if the row's state still equals ``expected_status``.

        The check and the write are a single UPDATE statement, so of two
        racing writers exactly one matches the row.

        Raises:
            NotFoundError: If no row has this id
            PreconditionFailedError: If the row exists in another state
        """
        state_column = getattr(self.model, state_field)
        try:
            result = self.db.execute(
                update(self.model)
                .where(self.model.id == id, state_column == expected_status)
                .values(**patch)
                .execution_options(synchronize_session=False)
            )
        except IntegrityError as e:
            self.db.rollback()
            raise UniqueConstraintViolationError(
                self.model.__name__, {"error": str(e.orig)}
            ) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError(f"Conditional update failed: {str(e)}") from e

        if result.rowcount != 1:
            self._raise_precondition_failed(id, expected_status, state_column)

        if commit:
            self.commit()
        else:
            self.db.flush()

        return self.refresh(id)

    def conditional_delete(
        self,
        id: str,
        expected_status: Any,
        commit: bool = True,
        state_field: str = "status",
    ) -> None:
        """
        Delete the row only if its state still equals ``expected_status``.

        Raises:
            NotFoundError: If no row has this id
            PreconditionFailedError: If the row exists in another state
        """
        state_column = getattr(self.model, state_field)
        try:
            result = self.db.execute(
                delete(self.model)
                .where(self.model.id == id, state_column == expected_status)
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError(f"Conditional delete failed: {str(e)}") from e

        if result.rowcount != 1:
            self._raise_precondition_failed(id, expected_status, state_column)

        entity = self.db.identity_map.get(self.db.identity_key(self.model, id))
        if entity is not None:
            self.db.expunge(entity)

        if commit:
            self.commit()
        else:
            self.db.flush()

    def _raise_precondition_failed(self, id: str, expected_status: Any, state_column) -> None:
        current = self.db.execute(
            select(state_column).where(self.model.id == id)
        ).scalar_one_or_none()
        if current is None:
            raise NotFoundError(self.model.__name__, str(id))
        raise PreconditionFailedError(
            str(id),
            getattr(expected_status, "value", str(expected_status)),
            getattr(current, "value", str(current)),
        )

    # ==================== Delete Operations ====================

    def delete(self, id: str, commit: bool = True) -> bool:
        """
        Hard delete entity.

        Returns:
            True if deleted, False if not found
        """
        try:
            entity = self.find_by_id(id)
            if entity is None:
                return False

            self.db.delete(entity)

            if commit:
                self.db.commit()
            else:
                self.db.flush()

            logger.info(f"Deleted {self.model.__name__} with id: {id}")
            return True

        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError(f"Delete failed: {str(e)}") from e

    # ==================== Count Operations ====================

    def count(self) -> int:
        """Total number of rows."""
        try:
            stmt = select(func.count()).select_from(self.model)
            return int(self.db.execute(stmt).scalar_one())
        except SQLAlchemyError as e:
            raise RepositoryError(f"Count failed: {str(e)}") from e
