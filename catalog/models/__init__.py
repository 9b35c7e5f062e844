"""Data models module."""

from catalog.models.identifiers import parse_object_id
from catalog.models.list_options import ListOptions
from catalog.models.product import (
    LOW_STOCK_THRESHOLD,
    CategoryStats,
    Pagination,
    ProductCreate,
    ProductPage,
    ProductStats,
    ProductUpdate,
)
from catalog.models.user import (
    LoginRequest,
    PasswordChange,
    Principal,
    ProfileUpdate,
    RegisterRequest,
    User,
    UserRole,
)

__all__ = [
    "LOW_STOCK_THRESHOLD",
    "CategoryStats",
    "ListOptions",
    "LoginRequest",
    "Pagination",
    "PasswordChange",
    "Principal",
    "ProductCreate",
    "ProductPage",
    "ProductStats",
    "ProductUpdate",
    "ProfileUpdate",
    "RegisterRequest",
    "User",
    "UserRole",
    "parse_object_id",
]
