"""Identifier parsing for store-generated ids."""

from typing import Any

from bson import ObjectId
from bson.errors import InvalidId

from catalog.errors import ValidationError


def parse_object_id(value: Any, field: str = "id") -> ObjectId:
    """Convert a boundary value into an ObjectId.

    Args:
        value: An ObjectId or its 24-character hex representation.
        field: Name reported in the validation details.

    Returns:
        The parsed ObjectId.

    Raises:
        ValidationError: If the value is not a valid ObjectId.
    """
    if isinstance(value, ObjectId):
        return value
    # ObjectId(None) would mint a fresh id
    if not isinstance(value, str):
        raise _invalid(field)
    try:
        return ObjectId(value)
    except (InvalidId, TypeError) as e:
        raise _invalid(field) from e


def _invalid(field: str) -> ValidationError:
    return ValidationError(
        f"Invalid {field}",
        details=[{"field": field, "message": "must be a 24-character hex ObjectId"}],
    )
