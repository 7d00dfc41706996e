"""Product request and response schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from products_api.schemas.pagination import PaginatedResponse


class ProductCreate(BaseModel):
    """Body of POST /api/products."""

    sku: str = Field(min_length=1, max_length=40, pattern=r"^[A-Z0-9-]+$")
    name: str = Field(min_length=1, max_length=200)
    price: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    sale_price: Decimal | None = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    stock: int = Field(default=0, ge=0)


class ProductResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    sku: str
    name: str
    price: Decimal
    sale_price: Decimal | None
    stock: int
    created_at: datetime
    updated_at: datetime


ProductListResponse = PaginatedResponse[ProductResponse]
