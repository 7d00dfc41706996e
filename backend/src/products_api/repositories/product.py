"""Product data-access layer.

Pure query functions: no business logic, no HTTP concerns.
Each function takes a session and returns models or scalars.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from products_api.models import Product


async def list_products(db: AsyncSession, skip: int, limit: int) -> list[Product]:
    """Return a page of products ordered by id."""
    stmt = select(Product).order_by(Product.id).offset(skip).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def count_products(db: AsyncSession) -> int:
    result = await db.execute(select(func.count(Product.id)))
    return result.scalar_one()


async def get_product(db: AsyncSession, product_id: int) -> Product | None:
    return await db.get(Product, product_id)


async def get_product_by_sku(db: AsyncSession, sku: str) -> Product | None:
    result = await db.execute(select(Product).where(Product.sku == sku))
    return result.scalar_one_or_none()


async def add_product(db: AsyncSession, product: Product) -> Product:
    db.add(product)
    await db.flush()
    return product


async def delete_product(db: AsyncSession, product: Product) -> None:
    await db.delete(product)
    await db.flush()
