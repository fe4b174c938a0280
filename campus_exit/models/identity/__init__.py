from campus_exit.models.identity.hall import Hall
from campus_exit.models.identity.principal import Principal, RoleAssignment
from campus_exit.models.identity.profiles import (
    HallAdminRecord,
    SecurityRecord,
    StudentRecord,
    SuperAdminRecord,
)

__all__ = [
    "Hall",
    "Principal",
    "RoleAssignment",
    "StudentRecord",
    "HallAdminRecord",
    "SecurityRecord",
    "SuperAdminRecord",
]
