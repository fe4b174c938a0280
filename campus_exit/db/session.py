"""Database session management."""
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from campus_exit.config.settings import settings


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """
    Create an engine for ``database_url`` (defaults to settings).

    SQLite engines get foreign key enforcement and cross-thread access;
    server databases get the configured connection pool.
    """
    url = database_url or settings.DATABASE_URL
    echo = settings.DB_ECHO if echo is None else echo

    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
        )
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_engine(
        url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_POOL_OVERFLOW,
    )


def build_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=bind)


engine = build_engine()

# Create SessionLocal class
SessionLocal = build_session_factory(engine)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency function that yields a database session.

    Usage in FastAPI endpoints:
        @router.get("/items/")
        def read_items(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
