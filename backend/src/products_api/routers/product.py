"""Product endpoints."""

from fastapi import APIRouter, Query, Response

from products_api.dependencies import DB, ApiKey
from products_api.schemas.problem import PROBLEM_RESPONSES
from products_api.schemas.product import ProductCreate, ProductListResponse, ProductResponse
from products_api.services import product as service

router = APIRouter(prefix="/api/products", tags=["products"], responses=PROBLEM_RESPONSES)


@router.get("", response_model=ProductListResponse, status_code=200)
async def list_products(
    db: DB,
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
) -> ProductListResponse:
    """List products ordered by id."""
    result = await service.get_products(db, skip, limit)
    return ProductListResponse.model_validate(result)


@router.get("/{product_id}", response_model=ProductResponse, status_code=200)
async def get_product(product_id: int, db: DB) -> ProductResponse:
    product = await service.get_product(db, product_id)
    return ProductResponse.model_validate(product)


@router.post("", response_model=ProductResponse, status_code=201, dependencies=[ApiKey])
async def create_product(body: ProductCreate, db: DB) -> ProductResponse:
    product = await service.create_product(db, body)
    return ProductResponse.model_validate(product)


@router.delete("/{product_id}", status_code=204, dependencies=[ApiKey])
async def delete_product(product_id: int, db: DB) -> Response:
    await service.delete_product(db, product_id)
    return Response(status_code=204)
