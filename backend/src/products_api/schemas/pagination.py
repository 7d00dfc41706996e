"""Page types for the product listing.

GET /api/products returns one page of products and the catalog size; the
service builds a ``Paginated`` and the router validates it into the response.
"""

from dataclasses import dataclass

from pydantic import BaseModel


class PaginatedResponse[T](BaseModel):
    """One page of ``T`` plus the offsets the client asked for.

    ``total`` counts the whole catalog, not the page, so clients can stop
    requesting once ``skip + len(items) >= total``. Reads attributes, so a
    ``Paginated`` of ORM products validates directly.
    """

    model_config = {"from_attributes": True}

    items: list[T]
    total: int
    skip: int
    limit: int


@dataclass
class Paginated[T]:
    """Service-side page; kept free of Pydantic so services stay HTTP-agnostic."""

    items: list[T]
    total: int
    skip: int
    limit: int
