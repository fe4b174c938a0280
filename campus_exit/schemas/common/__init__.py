from campus_exit.schemas.common.base import BaseResponseSchema, BaseSchema, TimestampMixin

__all__ = ["BaseSchema", "BaseResponseSchema", "TimestampMixin"]
