"""HTTP routes for the product catalog. Every route requires authentication."""

from typing import Any

from fastapi import APIRouter, Body, Depends, Request

from catalog.api.dependencies import get_principal, get_product_service
from catalog.models.identifiers import parse_object_id
from catalog.models.list_options import ListOptions
from catalog.models.user import Principal
from catalog.services.product_service import ProductService

router = APIRouter(prefix="/api/products", tags=["products"])


@router.post("", status_code=201)
async def create_product(
    payload: dict[str, Any] = Body(...),
    principal: Principal = Depends(get_principal),
    products: ProductService = Depends(get_product_service),
) -> dict:
    product = await products.create(principal.id, payload)
    return {"success": True, "message": "Product created successfully", "data": product}


@router.post("/bulk", status_code=201)
async def bulk_create_products(
    payload: list[Any] = Body(...),
    principal: Principal = Depends(get_principal),
    products: ProductService = Depends(get_product_service),
) -> dict:
    created = await products.bulk_create(principal.id, payload)
    return {"success": True, "message": "Bulk products created successfully", "data": created}


@router.get("")
async def list_products(
    request: Request,
    principal: Principal = Depends(get_principal),
    products: ProductService = Depends(get_product_service),
) -> dict:
    options = ListOptions.from_query(dict(request.query_params))
    page = await products.list_products(principal.id, options)
    return {"success": True, "data": page.items, "pagination": page.pagination.to_response()}


@router.get("/stats")
async def product_stats(
    principal: Principal = Depends(get_principal),
    products: ProductService = Depends(get_product_service),
) -> dict:
    stats = await products.stats(principal.id)
    return {"success": True, "data": stats.to_response()}


@router.get("/stats/categories")
async def category_stats(
    principal: Principal = Depends(get_principal),
    products: ProductService = Depends(get_product_service),
) -> dict:
    categories = await products.category_stats(principal.id)
    return {"success": True, "data": [category.to_response() for category in categories]}


@router.get("/{product_id}")
async def get_product(
    product_id: str,
    principal: Principal = Depends(get_principal),
    products: ProductService = Depends(get_product_service),
) -> dict:
    product = await products.get_by_id(principal.id, parse_object_id(product_id))
    return {"success": True, "data": product}


@router.put("/{product_id}")
async def update_product(
    product_id: str,
    payload: dict[str, Any] = Body(...),
    principal: Principal = Depends(get_principal),
    products: ProductService = Depends(get_product_service),
) -> dict:
    product = await products.update(principal.id, parse_object_id(product_id), payload)
    return {"success": True, "message": "Product updated successfully", "data": product}


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    principal: Principal = Depends(get_principal),
    products: ProductService = Depends(get_product_service),
) -> dict:
    await products.delete(principal.id, parse_object_id(product_id))
    return {"success": True, "message": "Product deleted successfully"}
