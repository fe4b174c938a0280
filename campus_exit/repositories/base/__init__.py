from campus_exit.repositories.base.base_repository import BaseRepository, ModelType

__all__ = ["BaseRepository", "ModelType"]
