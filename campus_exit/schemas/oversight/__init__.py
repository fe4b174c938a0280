from campus_exit.schemas.oversight.oversight import (
    DashboardSummary,
    PrincipalListingItem,
    RequestListingItem,
    RoleCounts,
    StatusCounts,
)

__all__ = [
    "DashboardSummary",
    "PrincipalListingItem",
    "RequestListingItem",
    "RoleCounts",
    "StatusCounts",
]
