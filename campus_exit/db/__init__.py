"""Database engine, sessions and schema bootstrap."""

from campus_exit.db.session import SessionLocal, build_engine, build_session_factory, get_db

__all__ = ["SessionLocal", "build_engine", "build_session_factory", "get_db"]
