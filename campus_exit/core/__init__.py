"""Core application modules."""

from .security import JWTManager, get_jwt_manager

__all__ = ["JWTManager", "get_jwt_manager"]
