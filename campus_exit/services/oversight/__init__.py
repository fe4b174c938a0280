from campus_exit.services.oversight.oversight_service import OversightService

__all__ = ["OversightService"]
