"""Database initialization utilities."""
from typing import Optional

from sqlalchemy.engine import Engine

from campus_exit.core.logging import get_logger
from campus_exit.models import Base

logger = get_logger(__name__)


def init_db(bind: Optional[Engine] = None) -> None:
    """
    Create all tables that do not exist yet.

    Note: This is suitable for development/testing only.
    For production, manage the schema with migrations.
    """
    if bind is None:
        from campus_exit.db.session import engine as bind

    Base.metadata.create_all(bind=bind)
    logger.info("Database tables ensured", extra={"table_count": len(Base.metadata.tables)})

