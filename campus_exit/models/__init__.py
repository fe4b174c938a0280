"""
Database models.

Importing this package registers every table on ``Base.metadata``.
"""

from campus_exit.models.base import Base
from campus_exit.models.exit_request import ExitRequest, ExitRequestStatusHistory
from campus_exit.models.identity import (
    Hall,
    HallAdminRecord,
    Principal,
    RoleAssignment,
    SecurityRecord,
    StudentRecord,
    SuperAdminRecord,
)

__all__ = [
    "Base",
    "ExitRequest",
    "ExitRequestStatusHistory",
    "Hall",
    "Principal",
    "RoleAssignment",
    "StudentRecord",
    "HallAdminRecord",
    "SecurityRecord",
    "SuperAdminRecord",
]
