"""
Base models package.

Provides base classes, custom types and enums for all database models.
"""

from campus_exit.models.base.base_model import (
    Base,
    BaseModel,
    TimestampModel,
)
from campus_exit.models.base.enums import (
    ACTIVE_STATUSES,
    ALLOWED_TRANSITIONS,
    GATE_USABLE_STATUSES,
    TERMINAL_STATUSES,
    ExitRequestStatus,
    ReviewDecision,
    UserRole,
    can_transition,
    enum_values,
)
from campus_exit.models.base.types import UTCDateTime

__all__ = [
    "Base",
    "BaseModel",
    "TimestampModel",
    "UTCDateTime",
    "UserRole",
    "ExitRequestStatus",
    "ReviewDecision",
    "ACTIVE_STATUSES",
    "TERMINAL_STATUSES",
    "GATE_USABLE_STATUSES",
    "ALLOWED_TRANSITIONS",
    "can_transition",
    "enum_values",
]
