"""Service layer."""

from catalog.services.identity_store import UserStore
from catalog.services.product_service import ProductService
from catalog.services.user_service import AuthResult, UserService

__all__ = [
    "AuthResult",
    "ProductService",
    "UserService",
    "UserStore",
]
