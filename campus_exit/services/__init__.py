"""
Service layer.

Every public operation returns a ``ServiceResult``; failures carry an
``ErrorCode`` instead of raising.
"""

from campus_exit.services.base import ServiceResult
from campus_exit.services.exit_request import ExitRequestLifecycleService, PassVerificationService
from campus_exit.services.identity import IdentityService
from campus_exit.services.oversight import OversightService

__all__ = [
    "ServiceResult",
    "IdentityService",
    "ExitRequestLifecycleService",
    "PassVerificationService",
    "OversightService",
]
