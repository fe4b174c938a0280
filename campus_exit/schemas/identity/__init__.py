from campus_exit.schemas.identity.identity import HallResponse, ProfileResponse, ProfileUpdate

__all__ = ["HallResponse", "ProfileResponse", "ProfileUpdate"]
