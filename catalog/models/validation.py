"""Helpers for turning pydantic validation output into catalog errors."""

from typing import Any, Mapping, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from catalog.errors import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def field_errors(error: PydanticValidationError) -> list[dict[str, Any]]:
    """Flatten pydantic errors into [{"field": ..., "message": ...}]."""
    details = []
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"]) or "__root__"
        details.append({"field": field, "message": item["msg"]})
    return details


def validate_model(model: Type[ModelT], data: Any, message: str = "Invalid input") -> ModelT:
    """Validate data against a pydantic model.

    Raises:
        ValidationError: With field-level details when validation fails.
    """
    if not isinstance(data, Mapping):
        raise ValidationError(message, details=[{"field": "__root__", "message": "expected an object"}])
    try:
        return model.model_validate(dict(data))
    except PydanticValidationError as e:
        raise ValidationError(message, details=field_errors(e)) from e
