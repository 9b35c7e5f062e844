"""Recognised query options for product listings."""

from datetime import date
from typing import Any, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from catalog.models.validation import validate_model

SortField = Literal["name", "price", "quantity", "category", "created_at", "updated_at"]

# Accept the camelCase spellings clients already send.
_SORT_ALIASES = {"createdAt": "created_at", "updatedAt": "updated_at"}


class ListOptions(BaseModel):
    """Filters, ordering and paging for a product listing.

    Exact price/quantity take precedence over their min/max range. created_at
    takes precedence over start_date/end_date. Dates are UTC calendar days.
    Only sort_order "desc" (case-sensitive) sorts descending.
    Unknown keys are rejected.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    search: Optional[str] = None
    name: Optional[str] = None
    category: Optional[str] = None

    price: Optional[float] = Field(None, ge=0)
    min_price: Optional[float] = Field(None, ge=0, alias="minPrice")
    max_price: Optional[float] = Field(None, ge=0, alias="maxPrice")

    quantity: Optional[int] = Field(None, ge=0)
    min_quantity: Optional[int] = Field(None, ge=0, alias="minQuantity")
    max_quantity: Optional[int] = Field(None, ge=0, alias="maxQuantity")

    created_at: Optional[date] = Field(None, alias="createdAt")
    start_date: Optional[date] = Field(None, alias="startDate")
    end_date: Optional[date] = Field(None, alias="endDate")

    sort_by: SortField = Field("created_at", alias="sortBy")
    sort_order: str = Field("desc", alias="sortOrder")

    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)

    @model_validator(mode="before")
    @classmethod
    def drop_blank_values(cls, data: Any) -> Any:
        # "?search=" means no search, not a search for the empty string
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if not (isinstance(v, str) and not v.strip())}
        return data

    @field_validator("sort_by", mode="before")
    @classmethod
    def normalise_sort_by(cls, value: Any) -> Any:
        return _SORT_ALIASES.get(value, value)

    @property
    def descending(self) -> bool:
        return self.sort_order == "desc"

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_query(cls, params: Mapping[str, Any]) -> "ListOptions":
        """Build options from raw query parameters.

        Raises:
            ValidationError: If a value is malformed or a key is not recognised.
        """
        return validate_model(cls, params, message="Invalid list options")
