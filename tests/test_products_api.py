"""
Storefront API: Products Endpoint Tests
=========================================

What:  End-to-end tests for GET /products.
How:   Real ConnectionProvider over a per-test SQLite file; the app is driven
       through HTTPX's ASGITransport. Failure modes use small provider and
       service doubles.

What we test:
    ✅ Empty table → 200 with []
    ✅ Rows come back ordered by id regardless of insertion order
    ✅ Repeated calls on an unchanged table are byte-identical
    ✅ Acquisition, query and mapping failures → generic 500
    ✅ A non-finite stock value is a mapping failure, not a crash
    ✅ The service recovers once the provider recovers
    ✅ Concurrent calls each return a complete list
"""

import asyncio
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from storefront.exceptions import MappingFailed, PoolExhausted, StoreUnavailable
from storefront.main import create_app
from storefront.routes.products import ProductListHandler
from storefront.routing import RouteTable

from tests.utils import insert_products

PRODUCTS = [
    {"id": 3, "name": "Salt", "stock": 4.0, "price": 90},
    {"id": 1, "name": "Tea", "stock": 10.0, "price": 350},
    {"id": 2, "name": "Rice", "stock": 2.5, "price": None},
]


class FlakyProvider:
    """Fails acquisition while `failing` is set, then defers to a real provider."""

    def __init__(self, inner, error):
        self.inner = inner
        self.error = error
        self.failing = True
        self.attempts = 0

    @asynccontextmanager
    async def acquire(self):
        self.attempts += 1
        if self.failing:
            raise self.error
        async with self.inner.acquire() as conn:
            yield conn


class StubProvider:
    """Hands out one fixed connection double."""

    def __init__(self, conn):
        self.conn = conn

    @asynccontextmanager
    async def acquire(self):
        yield self.conn


class FailingService:
    """Product service double whose listing always fails to map."""

    async def list_products(self, conn):
        raise MappingFailed(fields=["price"], context={"row_id": 9})


def _client_for(app) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


class TestListProducts:

    @pytest.mark.asyncio
    async def test_empty_table_returns_empty_list(self, test_client):
        response = await test_client.get("/products")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_products_ordered_by_id(self, test_client, provider):
        await insert_products(provider, PRODUCTS)

        response = await test_client.get("/products")

        assert response.status_code == 200
        assert response.json() == [
            {"id": 1, "name": "Tea", "stock": 10.0, "price": 350},
            {"id": 2, "name": "Rice", "stock": 2.5, "price": None},
            {"id": 3, "name": "Salt", "stock": 4.0, "price": 90},
        ]

    @pytest.mark.asyncio
    async def test_repeated_calls_are_byte_identical(self, test_client, provider):
        await insert_products(provider, PRODUCTS)

        first = await test_client.get("/products")
        second = await test_client.get("/products")

        assert first.content == second.content

    @pytest.mark.asyncio
    async def test_connection_returned_to_pool(self, test_client, provider):
        await test_client.get("/products")

        assert provider.engine.sync_engine.pool.checkedout() == 0

    @pytest.mark.asyncio
    async def test_concurrent_calls_each_get_complete_list(self, test_client, provider):
        await insert_products(provider, PRODUCTS)

        responses = await asyncio.gather(*(test_client.get("/products") for _ in range(10)))

        assert {r.status_code for r in responses} == {200}
        for response in responses:
            assert [p["id"] for p in response.json()] == [1, 2, 3]


class TestListProductsFailures:

    @pytest.mark.asyncio
    async def test_pool_exhaustion_returns_500_then_recovers(self, test_settings, provider):
        await insert_products(provider, PRODUCTS)
        flaky = FlakyProvider(provider, PoolExhausted(timeout=1.0))
        app = create_app(settings=test_settings, provider=flaky)

        async with _client_for(app) as client:
            failed = await client.get("/products")
            flaky.failing = False
            recovered = await client.get("/products")

        assert failed.status_code == 500
        assert failed.json()["error"] == "server_error"
        assert "pool" not in failed.text.lower()
        assert recovered.status_code == 200
        assert len(recovered.json()) == 3
        assert flaky.attempts == 2

    @pytest.mark.asyncio
    async def test_store_unavailable_returns_500(self, test_settings, provider):
        flaky = FlakyProvider(provider, StoreUnavailable(context={"host": "db.internal"}))
        app = create_app(settings=test_settings, provider=flaky)

        async with _client_for(app) as client:
            response = await client.get("/products")
            greeting = await client.get("/")

        assert response.status_code == 500
        assert "db.internal" not in response.text
        assert greeting.status_code == 200

    @pytest.mark.asyncio
    async def test_missing_table_returns_500(self, test_settings, bare_provider):
        app = create_app(settings=test_settings, provider=bare_provider)

        async with _client_for(app) as client:
            response = await client.get("/products")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "server_error"
        assert "products" not in body["message"]
        assert bare_provider.engine.sync_engine.pool.checkedout() == 0

    @pytest.mark.asyncio
    async def test_mapping_failure_returns_500(self, test_settings, provider):
        table = RouteTable()
        table.register("GET", "/products", ProductListHandler(provider, service=FailingService()))
        app = create_app(settings=test_settings, provider=provider, route_table=table)

        async with _client_for(app) as client:
            response = await client.get("/products", headers={"X-Request-ID": "req-42"})

        assert response.status_code == 500
        assert response.json() == {
            "error": "server_error",
            "message": "An internal error occurred. Please try again later.",
            "request_id": "req-42",
        }
        assert provider.engine.sync_engine.pool.checkedout() == 0

    @pytest.mark.asyncio
    async def test_non_finite_stock_returns_server_error(self, test_settings):
        result = MagicMock()
        result.fetchall.return_value = [
            {"id": 1, "name": "Tea", "stock": float("nan"), "price": 350},
        ]
        conn = AsyncMock()
        conn.execute.return_value = result
        app = create_app(settings=test_settings, provider=StubProvider(conn))

        async with _client_for(app) as client:
            response = await client.get("/products")

        assert response.status_code == 500
        assert response.json()["error"] == "server_error"
