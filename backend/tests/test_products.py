"""Integration tests for the /api/products endpoints and their problem responses."""

from collections.abc import AsyncIterator
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from products_api.config import Settings, settings
from products_api.db.session import Database, get_db
from products_api.main import create_app
from products_api.models import Product
from products_api.repositories import product as product_repo
from products_api.schemas.problem import ProblemResponse
from tests.factories import make_product, product_payload

TYPE_BASE = settings.problem_type_base_url.rstrip("/")
AUTH = {"X-API-Key": settings.api_key}
REQUEST_ID = "0HNAA1TL59OVD:00000003"
TRACEPARENT = "00-27c97bc619fcd41e48b522f67f140408-795561222be111e5-00"


def assert_problem(resp, status: int, slug: str) -> dict:
    assert resp.status_code == status
    assert resp.headers["content-type"].startswith("application/problem+json")
    body = resp.json()
    ProblemResponse.model_validate(body)
    assert body["type"] == f"{TYPE_BASE}/{slug}"
    assert body["status"] == status
    assert body["requestId"] == resp.headers["X-Request-ID"]
    return body


@pytest.mark.asyncio
async def test_get_product_returns_product(client: AsyncClient, db: AsyncSession) -> None:
    product = make_product(sku="KB-0001", price=Decimal("129.90"))
    db.add(product)
    await db.commit()

    resp = await client.get(f"/api/products/{product.id}")
    assert resp.status_code == 200
    body = resp.json()
    assert body["sku"] == "KB-0001"
    assert Decimal(body["price"]) == Decimal("129.90")
    assert body["sale_price"] is None


@pytest.mark.asyncio
async def test_get_missing_product_returns_not_found_problem(client: AsyncClient) -> None:
    resp = await client.get(
        "/api/products/0",
        headers={"X-Request-ID": REQUEST_ID, "traceparent": TRACEPARENT},
    )
    assert_problem(resp, 404, "not-found")
    assert resp.json() == {
        "type": f"{TYPE_BASE}/not-found",
        "title": "The requested resource was not found",
        "status": 404,
        "detail": "The product was not found.",
        "instance": "/api/products/0",
        "requestId": REQUEST_ID,
        "traceId": TRACEPARENT,
    }
    assert resp.headers["X-Request-ID"] == REQUEST_ID


@pytest.mark.asyncio
async def test_invalid_traceparent_gives_null_trace_id(client: AsyncClient) -> None:
    resp = await client.get("/api/products/0", headers={"traceparent": "not-a-trace"})
    body = assert_problem(resp, 404, "not-found")
    assert body["traceId"] is None


@pytest.mark.asyncio
async def test_list_products_is_paginated(client: AsyncClient, db: AsyncSession) -> None:
    db.add_all([make_product(sku=f"SKU-{n}") for n in range(5)])
    await db.commit()

    resp = await client.get("/api/products", params={"skip": 3, "limit": 10})
    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 5
    assert body["skip"] == 3
    assert body["limit"] == 10
    assert [item["sku"] for item in body["items"]] == ["SKU-3", "SKU-4"]


@pytest.mark.asyncio
async def test_invalid_query_returns_validation_problem(client: AsyncClient) -> None:
    resp = await client.get("/api/products", params={"limit": 0})
    body = assert_problem(resp, 400, "domain-validation")
    assert body["title"] == "A domain validation error occurred"
    assert body["detail"] == "One or more validation errors occurred."
    assert [error["field"] for error in body["errors"]] == ["limit"]


@pytest.mark.asyncio
async def test_create_product(client: AsyncClient) -> None:
    resp = await client.post("/api/products", json=product_payload(), headers=AUTH)
    assert resp.status_code == 201
    body = resp.json()
    assert body["sku"] == "MS-0001"
    assert body["stock"] == 3
    assert body["id"] > 0


@pytest.mark.asyncio
async def test_create_without_api_key_is_unauthorized(client: AsyncClient) -> None:
    resp = await client.post("/api/products", json=product_payload())
    body = assert_problem(resp, 401, "unauthorized")
    assert body["title"] == "Unauthorized access"
    assert body["detail"] == "The X-API-Key header is required."


@pytest.mark.asyncio
async def test_create_with_wrong_api_key_is_unauthorized(client: AsyncClient) -> None:
    resp = await client.post(
        "/api/products", json=product_payload(), headers={"X-API-Key": "wrong"}
    )
    body = assert_problem(resp, 401, "unauthorized")
    assert body["detail"] == "The API key is not valid."


@pytest.mark.asyncio
async def test_create_duplicate_sku_is_conflict(client: AsyncClient, db: AsyncSession) -> None:
    db.add(make_product(sku="MS-0001"))
    await db.commit()

    resp = await client.post("/api/products", json=product_payload(sku="MS-0001"), headers=AUTH)
    body = assert_problem(resp, 409, "conflict")
    assert body["title"] == "The resource already exists"
    assert body["detail"] == "A product with SKU MS-0001 already exists."
    assert body["instance"] == "/api/products"


@pytest.mark.asyncio
async def test_sale_price_not_below_price_is_domain_validation(client: AsyncClient) -> None:
    payload = product_payload(price="49.90", sale_price="59.90")
    resp = await client.post("/api/products", json=payload, headers=AUTH)
    body = assert_problem(resp, 400, "domain-validation")
    assert body["detail"] == "The sale price must be lower than the regular price."
    assert body["errors"] == [{"field": "sale_price", "message": "Must be lower than price."}]


@pytest.mark.asyncio
async def test_invalid_body_returns_field_errors(client: AsyncClient) -> None:
    payload = product_payload(sku="lower case", price="-1")
    resp = await client.post("/api/products", json=payload, headers=AUTH)
    body = assert_problem(resp, 400, "domain-validation")
    assert {error["field"] for error in body["errors"]} == {"sku", "price"}


@pytest.mark.asyncio
async def test_delete_product_in_stock_is_application_error(
    client: AsyncClient, db: AsyncSession
) -> None:
    product = make_product(stock=4)
    db.add(product)
    await db.commit()

    resp = await client.delete(f"/api/products/{product.id}", headers=AUTH)
    body = assert_problem(resp, 400, "application-error")
    assert body["title"] == "An application error occurred"
    assert body["detail"] == "The product still has 4 units in stock and cannot be deleted."


@pytest.mark.asyncio
async def test_delete_product(client: AsyncClient, db: AsyncSession) -> None:
    product = make_product(stock=0)
    db.add(product)
    await db.commit()

    resp = await client.delete(f"/api/products/{product.id}", headers=AUTH)
    assert resp.status_code == 204

    resp = await client.get(f"/api/products/{product.id}")
    assert_problem(resp, 404, "not-found")


@pytest.mark.asyncio
async def test_delete_missing_product_is_not_found(client: AsyncClient) -> None:
    resp = await client.delete("/api/products/999", headers=AUTH)
    body = assert_problem(resp, 404, "not-found")
    assert body["instance"] == "/api/products/999"


@pytest.mark.asyncio
async def test_non_ascii_api_key_is_unauthorized(client: AsyncClient) -> None:
    # Header bytes are latin-1 decoded, so this arrives as "clé"
    headers = {"X-API-Key": "clé".encode("latin-1")}
    resp = await client.post("/api/products", json=product_payload(), headers=headers)
    body = assert_problem(resp, 401, "unauthorized")
    assert body["detail"] == "The API key is not valid."


@pytest.mark.asyncio
async def test_api_key_is_read_from_app_settings(db: AsyncSession) -> None:
    custom_app = create_app(Settings(api_key="custom-key"))

    async def override_get_db() -> AsyncIterator[AsyncSession]:
        yield db

    custom_app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=custom_app),
        base_url="http://test",
    ) as custom_client:
        accepted = await custom_client.post(
            "/api/products", json=product_payload(), headers={"X-API-Key": "custom-key"}
        )
        rejected = await custom_client.post(
            "/api/products",
            json=product_payload(sku="MS-0002"),
            headers={"X-API-Key": "local-dev-key"},
        )

    assert accepted.status_code == 201
    assert_problem(rejected, 401, "unauthorized")


@pytest.mark.asyncio
async def test_duplicate_sku_missed_by_lookup_is_conflict(
    client: AsyncClient, db: AsyncSession, monkeypatch: pytest.MonkeyPatch
) -> None:
    db.add(make_product(sku="MS-0001"))
    await db.commit()

    # Another request inserts the SKU between our lookup and our insert
    async def no_match(_db: AsyncSession, _sku: str) -> None:
        return None

    monkeypatch.setattr(product_repo, "get_product_by_sku", no_match)

    resp = await client.post("/api/products", json=product_payload(sku="MS-0001"), headers=AUTH)
    body = assert_problem(resp, 409, "conflict")
    assert body["detail"] == "A product with SKU MS-0001 already exists."


@pytest.mark.asyncio
async def test_malformed_json_body_reports_body_field(client: AsyncClient) -> None:
    resp = await client.post(
        "/api/products",
        content=b'{"sku": ',
        headers={**AUTH, "Content-Type": "application/json"},
    )
    body = assert_problem(resp, 400, "domain-validation")
    assert [error["field"] for error in body["errors"]] == ["body"]


@pytest.mark.asyncio
async def test_database_creates_schema_from_settings() -> None:
    database = Database(Settings(database_url="sqlite+aiosqlite://"))
    await database.create_schema()

    async with database.sessionmaker() as session:
        session.add(make_product(sku="DB-0001"))
        await session.flush()
        count = (await session.execute(select(func.count(Product.id)))).scalar_one()

    await database.dispose()
    assert count == 1
