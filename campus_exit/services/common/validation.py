"""
Schema validation helpers.

Pydantic reports every violation; callers of this service get exactly one,
the first in field declaration order.
"""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Type, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from campus_exit.core.exceptions import ValidationError

TSchema = TypeVar("TSchema", bound=BaseModel)

# Location prefixes FastAPI adds in front of the field name
_LOCATION_PREFIXES = ("body", "query", "path", "header", "cookie")


def first_error(errors: Sequence[Mapping[str, Any]]) -> Tuple[Optional[str], str]:
    """
    Field name and message of the first pydantic error.

    Returns:
        (field, message); field is None for errors on the whole payload
    """
    if not errors:
        return None, "Validation failed"
    error = errors[0]
    loc = [str(part) for part in error.get("loc", ())]
    if loc and loc[0] in _LOCATION_PREFIXES:
        loc = loc[1:]
    field = ".".join(loc) or None
    message = str(error.get("msg", "Invalid value"))
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return field, message


def parse_model(schema: Type[TSchema], data: Union[TSchema, Mapping[str, Any]]) -> TSchema:
    """
    Validate ``data`` against ``schema``.

    Already-built instances are re-validated so drafts built long before the
    call are checked against the current time.

    Raises:
        ValidationError: With the first violation's field and message
    """
    payload: Dict[str, Any]
    if isinstance(data, BaseModel):
        payload = data.model_dump(exclude_unset=True)
    else:
        payload = dict(data)
    try:
        return schema.model_validate(payload)
    except PydanticValidationError as e:
        field, message = first_error(e.errors())
        raise ValidationError(message, field=field, details={"error_count": e.error_count()}) from e
