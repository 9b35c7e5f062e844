"""Aggregation pipeline builders for product queries.

Pure functions: given an owner and options they return MongoDB stage lists,
so the exact shape of every query can be asserted without a database.
The owner scope is always the first condition of the first $match stage.
"""

import re
from datetime import date, datetime, time, timezone
from typing import Any, Optional

from bson import ObjectId

from catalog.models.list_options import ListOptions
from catalog.models.product import LOW_STOCK_THRESHOLD

USERS_COLLECTION = "users"
OWNER_FIELD = "owner_id"

# Shape returned for every product read
PRODUCT_PROJECTION: dict[str, Any] = {
    "_id": 0,
    "id": {"$toString": "$_id"},
    "name": 1,
    "description": 1,
    "price": 1,
    "quantity": 1,
    "category": 1,
    "image": 1,
    "owner": {
        "id": {"$toString": "$owner._id"},
        "name": "$owner.name",
        "email": "$owner.email",
    },
    "createdAt": "$created_at",
    "updatedAt": "$updated_at",
}

# $sort runs after $project, so stored field names map to projected keys
SORT_KEYS = {"created_at": "createdAt", "updated_at": "updatedAt"}

END_OF_DAY = time(23, 59, 59, 999000)


def _contains(text: str) -> dict[str, Any]:
    """Case-insensitive literal substring match."""
    return {"$regex": re.escape(text), "$options": "i"}


def _exact_or_range(
    exact: Optional[float],
    minimum: Optional[float],
    maximum: Optional[float],
) -> Optional[Any]:
    if exact is not None:
        return exact
    bounds: dict[str, Any] = {}
    if minimum is not None:
        bounds["$gte"] = minimum
    if maximum is not None:
        bounds["$lte"] = maximum
    return bounds or None


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def _day_end(day: date) -> datetime:
    return datetime.combine(day, END_OF_DAY, tzinfo=timezone.utc)


def _created_at_range(options: ListOptions) -> Optional[dict[str, datetime]]:
    """Translate the date options into a created_at bound (UTC days)."""
    if options.created_at is not None:
        return {"$gte": _day_start(options.created_at), "$lte": _day_end(options.created_at)}
    if options.start_date is not None and options.end_date is not None:
        return {"$gte": _day_start(options.start_date), "$lte": _day_end(options.end_date)}
    if options.start_date is not None:
        return {"$gte": _day_start(options.start_date), "$lte": _day_end(options.start_date)}
    if options.end_date is not None:
        return {"$lte": _day_end(options.end_date)}
    return None


def build_list_filter(owner_id: ObjectId, options: ListOptions) -> dict[str, Any]:
    """Build the $match predicate shared by the listing and its count.

    Args:
        owner_id: The principal whose products are being listed.
        options: Validated list options.

    Returns:
        A predicate whose first key is the owner scope.
    """
    conditions: dict[str, Any] = {OWNER_FIELD: owner_id}

    if options.search:
        conditions["$or"] = [
            {"name": _contains(options.search)},
            {"description": _contains(options.search)},
        ]
    if options.name:
        conditions["name"] = _contains(options.name)
    if options.category:
        conditions["category"] = _contains(options.category)

    price = _exact_or_range(options.price, options.min_price, options.max_price)
    if price is not None:
        conditions["price"] = price

    quantity = _exact_or_range(options.quantity, options.min_quantity, options.max_quantity)
    if quantity is not None:
        conditions["quantity"] = quantity

    created_at = _created_at_range(options)
    if created_at is not None:
        conditions["created_at"] = created_at

    return conditions


def _owner_join_stages() -> list[dict[str, Any]]:
    return [
        {
            "$lookup": {
                "from": USERS_COLLECTION,
                "localField": OWNER_FIELD,
                "foreignField": "_id",
                "as": "owner",
            }
        },
        {"$unwind": {"path": "$owner", "preserveNullAndEmptyArrays": True}},
        {"$project": PRODUCT_PROJECTION},
    ]


def build_list_pipeline(owner_id: ObjectId, options: ListOptions) -> list[dict[str, Any]]:
    """Build the filtered, joined, sorted and paginated listing pipeline.

    Stage order is fixed: $match, $lookup, $unwind, $project, $sort, $skip,
    $limit. The sort carries id as a tie-breaker so pages never overlap.
    """
    direction = -1 if options.descending else 1
    sort: dict[str, int] = {SORT_KEYS.get(options.sort_by, options.sort_by): direction}
    sort["id"] = direction

    return [
        {"$match": build_list_filter(owner_id, options)},
        *_owner_join_stages(),
        {"$sort": sort},
        {"$skip": options.skip},
        {"$limit": options.limit},
    ]


def build_detail_pipeline(owner_id: ObjectId, product_ids: list[ObjectId]) -> list[dict[str, Any]]:
    """Fetch specific products in the listing shape, scoped to their owner."""
    id_condition: Any = product_ids[0] if len(product_ids) == 1 else {"$in": product_ids}
    return [
        {"$match": {OWNER_FIELD: owner_id, "_id": id_condition}},
        *_owner_join_stages(),
        {"$sort": {"id": 1}},
    ]


def build_stats_pipeline(owner_id: ObjectId) -> list[dict[str, Any]]:
    """Aggregate totals across all of an owner's products.

    total_value is the sum of prices. Low stock means quantity below
    LOW_STOCK_THRESHOLD.
    """
    return [
        {"$match": {OWNER_FIELD: owner_id}},
        {
            "$group": {
                "_id": None,
                "total_products": {"$sum": 1},
                "total_value": {"$sum": "$price"},
                "average_price": {"$avg": "$price"},
                "total_stock": {"$sum": "$quantity"},
                "min_price": {"$min": "$price"},
                "max_price": {"$max": "$price"},
                "categories": {"$addToSet": "$category"},
                "low_stock_products": {
                    "$sum": {"$cond": [{"$lt": ["$quantity", LOW_STOCK_THRESHOLD]}, 1, 0]}
                },
            }
        },
        {
            "$project": {
                "_id": 0,
                "total_products": 1,
                "total_value": 1,
                "average_price": {"$round": ["$average_price", 2]},
                "total_stock": 1,
                "min_price": 1,
                "max_price": 1,
                "categories": 1,
                "category_count": {"$size": "$categories"},
                "low_stock_products": 1,
            }
        },
    ]


def build_category_stats_pipeline(owner_id: ObjectId) -> list[dict[str, Any]]:
    """Per-category count, inventory value, average price and stock, largest first."""
    return [
        {"$match": {OWNER_FIELD: owner_id}},
        {
            "$group": {
                "_id": "$category",
                "count": {"$sum": 1},
                "total_value": {"$sum": {"$multiply": ["$price", "$quantity"]}},
                "average_price": {"$avg": "$price"},
                "total_stock": {"$sum": "$quantity"},
            }
        },
        {
            "$project": {
                "_id": 0,
                "category": "$_id",
                "count": 1,
                "total_value": 1,
                "average_price": {"$round": ["$average_price", 2]},
                "total_stock": 1,
            }
        },
        {"$sort": {"count": -1, "category": 1}},
    ]
