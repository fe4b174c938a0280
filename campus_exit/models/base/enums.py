"""
Enumerations shared by models and schemas.

The status values are persisted and reported verbatim; external reporting
keys off these exact lowercase tokens.
"""

from enum import Enum


class UserRole(str, Enum):
    """Role assigned to a principal."""

    STUDENT = "student"
    HALL_ADMIN = "hall_admin"
    SECURITY = "security"
    SUPER_ADMIN = "super_admin"


class ExitRequestStatus(str, Enum):
    """Exit request lifecycle status."""

    PENDING = "pending"
    APPROVED = "approved"
    DECLINED = "declined"
    EXITED = "exited"
    RETURNED = "returned"


class ReviewDecision(str, Enum):
    """Reviewer decision on a pending request."""

    APPROVE = "approve"
    DECLINE = "decline"


# Statuses that block a requester from submitting another request
ACTIVE_STATUSES = frozenset({
    ExitRequestStatus.PENDING,
    ExitRequestStatus.APPROVED,
    ExitRequestStatus.EXITED,
})

TERMINAL_STATUSES = frozenset({
    ExitRequestStatus.DECLINED,
    ExitRequestStatus.RETURNED,
})

# Statuses a pass credential can be acted on at the gate
GATE_USABLE_STATUSES = frozenset({
    ExitRequestStatus.APPROVED,
    ExitRequestStatus.EXITED,
})

ALLOWED_TRANSITIONS = {
    ExitRequestStatus.PENDING: frozenset({ExitRequestStatus.APPROVED, ExitRequestStatus.DECLINED}),
    ExitRequestStatus.APPROVED: frozenset({ExitRequestStatus.EXITED}),
    ExitRequestStatus.EXITED: frozenset({ExitRequestStatus.RETURNED}),
    ExitRequestStatus.DECLINED: frozenset(),
    ExitRequestStatus.RETURNED: frozenset(),
}


def can_transition(current: ExitRequestStatus, target: ExitRequestStatus) -> bool:
    """Check whether ``current -> target`` is an edge of the lifecycle."""
    return target in ALLOWED_TRANSITIONS[current]


def enum_values(enum_cls) -> list:
    """values_callable for SQLAlchemy Enum columns: persist the lowercase values."""
    return [member.value for member in enum_cls]
