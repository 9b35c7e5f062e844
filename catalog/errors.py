"""Typed failures raised by the service layer.

Every failure carries an ErrorKind so the HTTP boundary can map it to a status
code without inspecting messages.
"""

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Category of a service-layer failure."""

    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    NOT_FOUND_OR_FORBIDDEN = "not_found_or_forbidden"
    CONFLICT = "conflict"
    INTERNAL = "internal"


class AuthFailure(str, Enum):
    """Reason an authentication attempt was rejected."""

    NO_TOKEN = "no_token"
    MALFORMED = "malformed"
    EXPIRED = "expired"
    REVOKED = "revoked"
    USER_NOT_FOUND = "user_not_found"
    INVALID_CREDENTIALS = "invalid_credentials"


class CatalogError(Exception):
    """Base class for all service-layer failures."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CatalogError):
    """Raised when input does not satisfy a shape or constraint.

    Args:
        message: Summary of the problem.
        details: Field-level problems, e.g. [{"field": "price", "message": "..."}].
    """

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, details: Optional[list[dict[str, Any]]] = None):
        super().__init__(message)
        self.details = details or []


class AuthenticationError(CatalogError):
    """Raised when a token or credential is missing, invalid, expired or revoked."""

    kind = ErrorKind.AUTHENTICATION

    def __init__(self, reason: AuthFailure, message: str = "Authentication required"):
        super().__init__(message)
        self.reason = reason


class NotFoundOrForbidden(CatalogError):
    """Raised when a record does not exist or is not owned by the caller.

    Both cases share one outcome so other tenants' records stay invisible.
    """

    kind = ErrorKind.NOT_FOUND_OR_FORBIDDEN

    def __init__(self, message: str = "Product not found"):
        super().__init__(message)


class ConflictError(CatalogError):
    """Raised on a unique-constraint violation such as a duplicate email."""

    kind = ErrorKind.CONFLICT


class InternalError(CatalogError):
    """Raised when the store is unavailable or something unexpected fails."""

    kind = ErrorKind.INTERNAL
