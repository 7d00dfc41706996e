"""Product business logic.

Services enforce catalog rules and raise domain failures; they never build
HTTP responses. The exception handlers turn failures into problem details.
"""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from products_api.exceptions import (
    ApplicationFailure,
    ConflictFailure,
    FieldError,
    NotFoundFailure,
    ValidationFailure,
)
from products_api.models import Product
from products_api.repositories import product as repo
from products_api.schemas.pagination import Paginated
from products_api.schemas.product import ProductCreate

PRODUCT_NOT_FOUND = "The product was not found."


def _duplicate_sku(sku: str) -> ConflictFailure:
    return ConflictFailure(f"A product with SKU {sku} already exists.", resource_id=sku)


async def get_products(db: AsyncSession, skip: int, limit: int) -> Paginated[Product]:
    items = await repo.list_products(db, skip, limit)
    total = await repo.count_products(db)
    return Paginated(items=items, total=total, skip=skip, limit=limit)


async def get_product(db: AsyncSession, product_id: int) -> Product:
    """Return the product or raise NotFoundFailure."""
    product = await repo.get_product(db, product_id)
    if product is None:
        raise NotFoundFailure(PRODUCT_NOT_FOUND, resource_id=product_id)
    return product


async def create_product(db: AsyncSession, data: ProductCreate) -> Product:
    """Create a product after checking pricing rules and SKU uniqueness."""
    if data.sale_price is not None and data.sale_price >= data.price:
        raise ValidationFailure(
            "The sale price must be lower than the regular price.",
            errors=[FieldError("sale_price", "Must be lower than price.")],
        )

    if await repo.get_product_by_sku(db, data.sku) is not None:
        raise _duplicate_sku(data.sku)

    product = Product(
        sku=data.sku,
        name=data.name,
        price=data.price,
        sale_price=data.sale_price,
        stock=data.stock,
    )
    try:
        return await repo.add_product(db, product)
    except IntegrityError as exc:
        # A concurrent create took the SKU between the lookup and the insert.
        raise _duplicate_sku(data.sku) from exc


async def delete_product(db: AsyncSession, product_id: int) -> None:
    """Delete a product that has no units left in stock."""
    product = await get_product(db, product_id)
    if product.stock > 0:
        raise ApplicationFailure(
            f"The product still has {product.stock} units in stock and cannot be deleted.",
            resource_id=product_id,
        )
    await repo.delete_product(db, product)
