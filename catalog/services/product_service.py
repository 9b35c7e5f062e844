"""Product catalog use cases, always scoped to the owning principal.

Every read and write includes the owner in the store predicate itself, so a
product owned by someone else is indistinguishable from one that does not
exist.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Sequence

from bson import ObjectId

from catalog.clients import PRODUCTS, MongoDBClient
from catalog.errors import NotFoundOrForbidden, ValidationError
from catalog.models.list_options import ListOptions
from catalog.models.product import (
    OWNER_KEYS,
    CategoryStats,
    Pagination,
    ProductCreate,
    ProductPage,
    ProductStats,
    ProductUpdate,
)
from catalog.models.validation import validate_model
from catalog.pipelines.product_pipelines import (
    OWNER_FIELD,
    build_category_stats_pipeline,
    build_detail_pipeline,
    build_list_filter,
    build_list_pipeline,
    build_stats_pipeline,
)

logger = logging.getLogger(__name__)


def _without_owner(attrs: Mapping[str, Any]) -> dict[str, Any]:
    # Ownership always comes from the principal, never from the payload
    return {k: v for k, v in attrs.items() if k not in OWNER_KEYS}


class ProductService:
    """Create, read, update, delete and summarise an owner's products."""

    def __init__(self, client: MongoDBClient):
        self._client = client

    def _new_document(self, owner_id: ObjectId, product: ProductCreate) -> dict[str, Any]:
        now = datetime.now(timezone.utc)
        return {
            **product.model_dump(),
            OWNER_FIELD: owner_id,
            "created_at": now,
            "updated_at": now,
        }

    async def _fetch(self, owner_id: ObjectId, product_ids: list[ObjectId]) -> list[dict[str, Any]]:
        return await self._client.aggregate(PRODUCTS, build_detail_pipeline(owner_id, product_ids))

    async def create(self, owner_id: ObjectId, attrs: Mapping[str, Any]) -> dict[str, Any]:
        """Validate and store a product owned by owner_id.

        Raises:
            ValidationError: If attrs violate the product constraints.
        """
        if not isinstance(attrs, Mapping):
            raise ValidationError("Product must be an object")
        product = validate_model(ProductCreate, _without_owner(attrs), message="Invalid product")

        stored = await self._client.insert_one(PRODUCTS, self._new_document(owner_id, product))
        logger.info(f"Created product {stored['_id']} for owner {owner_id}")

        created = await self._fetch(owner_id, [stored["_id"]])
        if not created:
            raise NotFoundOrForbidden()
        return created[0]

    async def bulk_create(self, owner_id: ObjectId, items: Sequence[Mapping[str, Any]]) -> list[dict[str, Any]]:
        """Validate every item, then insert them as one batch.

        Nothing is written unless every item is valid.

        Raises:
            ValidationError: Listing each offending index and its field errors.
        """
        if isinstance(items, (str, bytes, Mapping)) or not isinstance(items, Sequence) or not items:
            raise ValidationError("Expected a non-empty list of products")

        products: list[ProductCreate] = []
        failures: list[dict[str, Any]] = []
        for index, attrs in enumerate(items):
            try:
                if not isinstance(attrs, Mapping):
                    raise ValidationError("Product must be an object")
                products.append(validate_model(ProductCreate, _without_owner(attrs)))
            except ValidationError as e:
                failures.append({"index": index, "errors": e.details or [{"message": e.message}]})

        if failures:
            indices = ", ".join(str(f["index"]) for f in failures)
            raise ValidationError(f"Invalid products at indices: {indices}", details=failures)

        ids = await self._client.insert_many(
            PRODUCTS, [self._new_document(owner_id, product) for product in products]
        )
        logger.info(f"Bulk created {len(ids)} products for owner {owner_id}")

        created = await self._fetch(owner_id, ids)
        order = {str(product_id): position for position, product_id in enumerate(ids)}
        return sorted(created, key=lambda doc: order.get(doc["id"], len(order)))

    async def list_products(self, owner_id: ObjectId, options: ListOptions) -> ProductPage:
        """Return one page of products plus pagination metadata.

        The total is counted with exactly the predicate the page uses.
        """
        total = await self._client.count_documents(PRODUCTS, build_list_filter(owner_id, options))
        items = await self._client.aggregate(PRODUCTS, build_list_pipeline(owner_id, options))
        return ProductPage(
            items=items,
            pagination=Pagination.compute(options.page, options.limit, total),
        )

    async def get_by_id(self, owner_id: ObjectId, product_id: ObjectId) -> dict[str, Any]:
        """Raises NotFoundOrForbidden unless owner_id owns product_id."""
        found = await self._fetch(owner_id, [product_id])
        if not found:
            raise NotFoundOrForbidden()
        return found[0]

    async def update(self, owner_id: ObjectId, product_id: ObjectId, patch: Mapping[str, Any]) -> dict[str, Any]:
        """Atomically apply a validated partial update.

        Raises:
            ValidationError: If the patch is empty, sets a required field to
                null, tries to change the owner, or violates a constraint.
            NotFoundOrForbidden: Under the same conditions as get_by_id.
        """
        if not isinstance(patch, Mapping):
            raise ValidationError("Update must be an object")
        if any(key in OWNER_KEYS for key in patch):
            raise ValidationError(
                "Product owner cannot be changed",
                details=[{"field": "owner", "message": "is immutable"}],
            )
        changes = validate_model(ProductUpdate, patch, message="Invalid product update").changes()
        if not changes:
            raise ValidationError("No product changes provided")

        changes["updated_at"] = datetime.now(timezone.utc)
        updated = await self._client.find_one_and_update(
            PRODUCTS,
            {"_id": product_id, OWNER_FIELD: owner_id},
            {"$set": changes},
        )
        if updated is None:
            raise NotFoundOrForbidden()
        logger.info(f"Updated product {product_id} for owner {owner_id}")
        return await self.get_by_id(owner_id, product_id)

    async def delete(self, owner_id: ObjectId, product_id: ObjectId) -> None:
        """Atomically remove the product; NotFoundOrForbidden if there is none."""
        deleted = await self._client.find_one_and_delete(
            PRODUCTS,
            {"_id": product_id, OWNER_FIELD: owner_id},
        )
        if deleted is None:
            raise NotFoundOrForbidden()
        logger.info(f"Deleted product {product_id} for owner {owner_id}")

    async def stats(self, owner_id: ObjectId) -> ProductStats:
        """Inventory totals; an owner with no products gets an all-zero record."""
        results = await self._client.aggregate(PRODUCTS, build_stats_pipeline(owner_id))
        return ProductStats.from_document(results[0] if results else None)

    async def category_stats(self, owner_id: ObjectId) -> list[CategoryStats]:
        results = await self._client.aggregate(PRODUCTS, build_category_stats_pipeline(owner_id))
        return [CategoryStats.from_document(doc) for doc in results]
