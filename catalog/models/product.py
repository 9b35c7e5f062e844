"""Product models: write payloads, stats records and list results."""

import math
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

NAME_MAX_LENGTH = 100
LOW_STOCK_THRESHOLD = 10

# Keys a client might use to claim ownership; always replaced by the principal.
OWNER_KEYS = ("owner", "owner_id", "ownerId", "createdBy", "created_by")


class ProductCreate(BaseModel):
    """Attributes accepted when creating a product."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    description: str = ""
    price: float = Field(..., ge=0, strict=True)
    quantity: int = Field(0, ge=0, strict=True)
    category: Optional[str] = None
    image: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


class ProductUpdate(BaseModel):
    """Partial update; only fields present in the payload are written."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=NAME_MAX_LENGTH)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0, strict=True)
    quantity: Optional[int] = Field(None, ge=0, strict=True)
    category: Optional[str] = None
    image: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("name", "description", "price", "quantity")
    @classmethod
    def not_null(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value

    def changes(self) -> dict[str, Any]:
        """Return only the fields the client actually sent."""
        return self.model_dump(exclude_unset=True)


class ResponseRecord(BaseModel):
    """Read-only result record, serialised with camelCase keys."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    def to_response(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class ProductStats(ResponseRecord):
    """Aggregate statistics over one owner's products.

    total_value is the sum of prices, not price times quantity.
    """

    total_products: int = 0
    total_value: float = 0
    average_price: float = 0
    total_stock: int = 0
    min_price: float = 0
    max_price: float = 0
    categories: list[str] = Field(default_factory=list)
    category_count: int = 0
    low_stock_products: int = 0

    @classmethod
    def from_document(cls, doc: Optional[dict[str, Any]]) -> "ProductStats":
        if not doc:
            return cls()
        categories = sorted(c for c in doc.get("categories", []) if c is not None)
        return cls(
            total_products=doc.get("total_products", 0),
            total_value=doc.get("total_value", 0),
            average_price=doc.get("average_price") or 0,
            total_stock=doc.get("total_stock", 0),
            min_price=doc.get("min_price") or 0,
            max_price=doc.get("max_price") or 0,
            categories=categories,
            category_count=len(categories),
            low_stock_products=doc.get("low_stock_products", 0),
        )


class CategoryStats(ResponseRecord):
    """Per-category totals; total_value is the inventory value (price * quantity)."""

    category: Optional[str]
    count: int
    total_value: float
    average_price: float
    total_stock: int

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "CategoryStats":
        return cls(
            category=doc.get("category"),
            count=doc.get("count", 0),
            total_value=doc.get("total_value", 0),
            average_price=doc.get("average_price") or 0,
            total_stock=doc.get("total_stock", 0),
        )


class Pagination(ResponseRecord):
    """Page metadata returned alongside a product listing."""

    current_page: int
    total_pages: int
    total_products: int
    has_next: bool
    has_prev: bool

    @classmethod
    def compute(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(
            current_page=page,
            total_pages=math.ceil(total / limit),
            total_products=total,
            has_next=page * limit < total,
            has_prev=page > 1,
        )


@dataclass(frozen=True)
class ProductPage:
    """One page of projected product documents."""

    items: list[dict[str, Any]]
    pagination: Pagination
