"""
Repository layer.

Narrow store interfaces over the SQLAlchemy session.
"""

from campus_exit.repositories.base.base_repository import BaseRepository
from campus_exit.repositories.exit_request import ExitRequestRepository
from campus_exit.repositories.identity import IdentityRepository

__all__ = [
    "BaseRepository",
    "ExitRequestRepository",
    "IdentityRepository",
]
