from campus_exit.models.exit_request.exit_request import (
    ExitRequest,
    ExitRequestStatusHistory,
)

__all__ = ["ExitRequest", "ExitRequestStatusHistory"]
