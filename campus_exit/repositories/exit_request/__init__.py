from campus_exit.repositories.exit_request.exit_request_repository import (
    ExitRequestRepository,
    RequestListingRow,
)

__all__ = ["ExitRequestRepository", "RequestListingRow"]
