"""Tests for ProductService against a mocked MongoDB client.

These tests verify:
- Owner injection and owner scoping of every store call
- Validation of create/bulk create/update payloads
- Pagination metadata
- Not-found and not-owned being indistinguishable
- Zero-valued statistics for owners without products
"""

import math
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from bson import ObjectId

from catalog.clients import MongoDBClient
from catalog.errors import ErrorKind, NotFoundOrForbidden, ValidationError
from catalog.models.list_options import ListOptions
from catalog.models.product import CategoryStats, Pagination, ProductStats
from catalog.pipelines.product_pipelines import build_list_filter, build_list_pipeline
from catalog.services.product_service import ProductService

OWNER = ObjectId("65a000000000000000000001")
OTHER_OWNER = ObjectId("65a000000000000000000002")


def projected(product_id, **fields):
    now = datetime.now(timezone.utc)
    doc = {
        "id": str(product_id),
        "name": "Lamp",
        "description": "",
        "price": 10.0,
        "quantity": 5,
        "category": None,
        "image": None,
        "owner": {"id": str(OWNER), "name": "Ada", "email": "ada@example.com"},
        "createdAt": now,
        "updatedAt": now,
    }
    doc.update(fields)
    return doc


@pytest.fixture
def client():
    mock = AsyncMock(spec=MongoDBClient)
    mock.insert_one.side_effect = lambda collection, document: {**document, "_id": ObjectId()}
    mock.aggregate.return_value = []
    return mock


@pytest.fixture
def service(client):
    return ProductService(client)


class TestCreate:
    """Test single product creation."""

    @pytest.mark.asyncio
    async def test_owner_is_injected_and_client_owner_ignored(self, service, client):
        client.aggregate.return_value = [projected(ObjectId())]

        await service.create(OWNER, {
            "name": "  Desk Lamp ",
            "price": 19.99,
            "quantity": 3,
            "category": "Home",
            "createdBy": str(OTHER_OWNER),
            "owner_id": str(OTHER_OWNER),
        })

        collection, document = client.insert_one.await_args.args
        assert collection == "products"
        assert document["owner_id"] == OWNER
        assert "createdBy" not in document
        assert document["name"] == "Desk Lamp"
        assert document["description"] == ""
        assert document["price"] == 19.99
        assert document["quantity"] == 3
        assert document["category"] == "Home"
        assert document["created_at"] == document["updated_at"]
        assert document["created_at"].tzinfo is not None

    @pytest.mark.asyncio
    async def test_returns_projected_product_scoped_to_owner(self, service, client):
        expected = projected(ObjectId(), name="Desk Lamp")
        client.aggregate.return_value = [expected]

        result = await service.create(OWNER, {"name": "Desk Lamp", "price": 1})

        assert result == expected
        _, pipeline = client.aggregate.await_args.args
        assert pipeline[0]["$match"]["owner_id"] == OWNER

    @pytest.mark.asyncio
    async def test_quantity_defaults_to_zero(self, service, client):
        client.aggregate.return_value = [projected(ObjectId())]

        await service.create(OWNER, {"name": "Pen", "price": 0})

        _, document = client.insert_one.await_args.args
        assert document["quantity"] == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "attrs,field",
        [
            ({"price": 1}, "name"),
            ({"name": "   ", "price": 1}, "name"),
            ({"name": "x" * 101, "price": 1}, "name"),
            ({"name": "Pen"}, "price"),
            ({"name": "Pen", "price": -0.01}, "price"),
            ({"name": "Pen", "price": 1, "quantity": -1}, "quantity"),
            ({"name": "Pen", "price": True}, "price"),
            ({"name": "Pen", "price": 1, "quantity": True}, "quantity"),
            ({"name": "Pen", "price": "10"}, "price"),
            ({"name": "Pen", "price": 1, "colour": "red"}, "colour"),
        ],
    )
    async def test_invalid_attrs(self, service, client, attrs, field):
        with pytest.raises(ValidationError) as exc_info:
            await service.create(OWNER, attrs)

        assert exc_info.value.kind is ErrorKind.VALIDATION
        assert field in [detail["field"] for detail in exc_info.value.details]
        client.insert_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_name_of_exactly_100_chars_is_allowed(self, service, client):
        client.aggregate.return_value = [projected(ObjectId())]

        await service.create(OWNER, {"name": "x" * 100, "price": 1})

        client.insert_one.assert_awaited_once()


class TestBulkCreate:
    """Test batch creation."""

    @pytest.mark.asyncio
    async def test_all_valid_items_inserted_in_one_batch(self, service, client):
        ids = [ObjectId(), ObjectId()]
        client.insert_many.return_value = ids
        # Store returns them out of order; service restores submission order
        client.aggregate.return_value = [projected(ids[1], name="B"), projected(ids[0], name="A")]

        result = await service.bulk_create(OWNER, [
            {"name": "A", "price": 1, "owner": str(OTHER_OWNER)},
            {"name": "B", "price": 2},
        ])

        collection, documents = client.insert_many.await_args.args
        assert collection == "products"
        assert [d["owner_id"] for d in documents] == [OWNER, OWNER]
        assert all("owner" not in d for d in documents)
        assert [r["name"] for r in result] == ["A", "B"]
        client.insert_many.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_any_invalid_item_fails_whole_batch(self, service, client):
        with pytest.raises(ValidationError) as exc_info:
            await service.bulk_create(OWNER, [
                {"name": "ok", "price": 1},
                {"name": "", "price": 1},
                {"name": "ok too", "price": 2},
                {"name": "bad", "price": -5},
                "not an object",
            ])

        assert [d["index"] for d in exc_info.value.details] == [1, 3, 4]
        assert "1, 3, 4" in exc_info.value.message
        client.insert_many.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("items", [[], {"name": "A", "price": 1}, "A"])
    async def test_non_list_or_empty_rejected(self, service, client, items):
        with pytest.raises(ValidationError):
            await service.bulk_create(OWNER, items)

        client.insert_many.assert_not_awaited()


class TestList:
    """Test filtered, paginated listing."""

    @pytest.mark.asyncio
    async def test_count_and_page_use_the_same_predicate(self, service, client):
        options = ListOptions.from_query({"search": "lamp", "minPrice": "5", "page": "2", "limit": "5"})
        client.count_documents.return_value = 12
        client.aggregate.return_value = [projected(ObjectId()) for _ in range(5)]

        page = await service.list_products(OWNER, options)

        client.count_documents.assert_awaited_once_with("products", build_list_filter(OWNER, options))
        client.aggregate.assert_awaited_once_with("products", build_list_pipeline(OWNER, options))
        assert len(page.items) == 5
        assert page.pagination == Pagination(
            current_page=2, total_pages=3, total_products=12, has_next=True, has_prev=True,
        )

    @pytest.mark.asyncio
    async def test_empty_listing(self, service, client):
        client.count_documents.return_value = 0

        page = await service.list_products(OWNER, ListOptions())

        assert page.items == []
        assert page.pagination == Pagination(
            current_page=1, total_pages=0, total_products=0, has_next=False, has_prev=False,
        )


class TestPagination:
    """Test pagination arithmetic."""

    @pytest.mark.parametrize("total", [0, 1, 9, 10, 11, 25, 100])
    @pytest.mark.parametrize("limit", [1, 3, 10])
    def test_metadata_matches_definition(self, total, limit):
        pages = max(math.ceil(total / limit), 1)
        for page in range(1, pages + 1):
            meta = Pagination.compute(page, limit, total)

            assert meta.total_pages == math.ceil(total / limit)
            assert meta.has_next == (page * limit < total)
            assert meta.has_prev == (page > 1)

    def test_last_page_has_no_next(self):
        meta = Pagination.compute(3, 10, 30)

        assert meta.has_next is False
        assert meta.has_prev is True

    def test_response_uses_camel_case_keys(self):
        assert Pagination.compute(2, 10, 25).to_response() == {
            "currentPage": 2,
            "totalPages": 3,
            "totalProducts": 25,
            "hasNext": True,
            "hasPrev": True,
        }


class TestSingleProduct:
    """Test get/update/delete scoping."""

    @pytest.mark.asyncio
    async def test_get_by_id_scopes_lookup_by_owner(self, service, client):
        product_id = ObjectId()
        client.aggregate.return_value = [projected(product_id)]

        result = await service.get_by_id(OWNER, product_id)

        assert result["id"] == str(product_id)
        _, pipeline = client.aggregate.await_args.args
        assert pipeline[0] == {"$match": {"owner_id": OWNER, "_id": product_id}}

    @pytest.mark.asyncio
    async def test_not_owned_and_missing_are_indistinguishable(self, service, client):
        client.aggregate.return_value = []

        with pytest.raises(NotFoundOrForbidden) as other_tenant:
            await service.get_by_id(OTHER_OWNER, ObjectId())
        with pytest.raises(NotFoundOrForbidden) as missing:
            await service.get_by_id(OWNER, ObjectId())

        assert other_tenant.value.message == missing.value.message
        assert other_tenant.value.kind is missing.value.kind is ErrorKind.NOT_FOUND_OR_FORBIDDEN

    @pytest.mark.asyncio
    async def test_update_is_atomic_and_scoped(self, service, client):
        product_id = ObjectId()
        client.find_one_and_update.return_value = {"_id": product_id}
        client.aggregate.return_value = [projected(product_id, price=25.0)]

        result = await service.update(OWNER, product_id, {"price": 25, "name": " Lamp "})

        collection, predicate, update = client.find_one_and_update.await_args.args
        assert collection == "products"
        assert predicate == {"_id": product_id, "owner_id": OWNER}
        assert update["$set"]["price"] == 25
        assert update["$set"]["name"] == "Lamp"
        assert "updated_at" in update["$set"]
        assert "quantity" not in update["$set"]
        assert result["price"] == 25.0

    @pytest.mark.asyncio
    async def test_update_of_other_tenants_product_is_not_found(self, service, client):
        client.find_one_and_update.return_value = None

        with pytest.raises(NotFoundOrForbidden):
            await service.update(OTHER_OWNER, ObjectId(), {"price": 1})

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "patch",
        [
            {},
            {"price": None},
            {"name": None},
            {"price": -1},
            {"price": False},
            {"quantity": True},
            {"owner_id": str(OTHER_OWNER)},
            {"createdBy": str(OTHER_OWNER), "price": 1},
            {"unknown": 1},
        ],
    )
    async def test_invalid_patch_rejected_before_store(self, service, client, patch):
        with pytest.raises(ValidationError):
            await service.update(OWNER, ObjectId(), patch)

        client.find_one_and_update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_is_scoped_and_repeat_delete_is_not_found(self, service, client):
        product_id = ObjectId()
        client.find_one_and_delete.side_effect = [{"_id": product_id}, None]

        await service.delete(OWNER, product_id)
        with pytest.raises(NotFoundOrForbidden):
            await service.delete(OWNER, product_id)

        for call in client.find_one_and_delete.await_args_list:
            assert call.args == ("products", {"_id": product_id, "owner_id": OWNER})


class TestStats:
    """Test statistics aggregation results."""

    @pytest.mark.asyncio
    async def test_owner_without_products_gets_zero_record(self, service, client):
        client.aggregate.return_value = []

        stats = await service.stats(OWNER)

        assert stats == ProductStats()
        assert stats.total_products == 0
        assert stats.total_value == 0
        assert stats.average_price == 0
        assert stats.total_stock == 0
        assert stats.categories == []
        assert stats.to_response() == {
            "totalProducts": 0,
            "totalValue": 0,
            "averagePrice": 0,
            "totalStock": 0,
            "minPrice": 0,
            "maxPrice": 0,
            "categories": [],
            "categoryCount": 0,
            "lowStockProducts": 0,
        }

    @pytest.mark.asyncio
    async def test_stats_record_from_aggregation(self, service, client):
        client.aggregate.return_value = [{
            "total_products": 2,
            "total_value": 30,
            "average_price": 15.0,
            "total_stock": 6,
            "min_price": 10,
            "max_price": 20,
            "categories": ["tools", None, "garden"],
            "category_count": 3,
            "low_stock_products": 2,
        }]

        stats = await service.stats(OWNER)

        _, pipeline = client.aggregate.await_args.args
        assert pipeline[0] == {"$match": {"owner_id": OWNER}}
        assert stats.total_products == 2
        assert stats.total_value == 30
        assert stats.average_price == 15.0
        assert stats.total_stock == 6
        assert stats.low_stock_products == 2
        assert stats.categories == ["garden", "tools"]
        assert stats.category_count == 2

    @pytest.mark.asyncio
    async def test_category_stats(self, service, client):
        client.aggregate.return_value = [
            {"category": "tools", "count": 2, "total_value": 70, "average_price": 15.0, "total_stock": 6},
        ]

        result = await service.category_stats(OWNER)

        assert result == [
            CategoryStats(category="tools", count=2, total_value=70, average_price=15.0, total_stock=6)
        ]
