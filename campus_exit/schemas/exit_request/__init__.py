from campus_exit.schemas.exit_request.exit_request import (
    ExitRequestDraft,
    ExitRequestResponse,
    GateAction,
    PassLookupResponse,
    ReviewRequest,
    StatusHistoryEntry,
)

__all__ = [
    "ExitRequestDraft",
    "ExitRequestResponse",
    "GateAction",
    "PassLookupResponse",
    "ReviewRequest",
    "StatusHistoryEntry",
]
