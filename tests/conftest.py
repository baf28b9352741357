"""
Storefront API: Test Configuration (conftest.py)
==================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── store_url:        SQLite file URL in the test's tmp_path
    ├── test_settings:    Settings pointing at store_url
    ├── provider:         ConnectionProvider with the products table created
    ├── bare_provider:    ConnectionProvider on a store with no tables
    ├── test_app:         FastAPI app built from test_settings + provider
    ├── test_client:      HTTPX AsyncClient for endpoint testing
    └── mock_connection:  AsyncMock standing in for an AsyncConnection
"""

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from storefront.config import Settings
from storefront.database import Base, ConnectionProvider
from storefront.main import create_app
from storefront.models.product import ProductRecord  # noqa: F401  (registers the table)


@pytest.fixture
def store_url(tmp_path) -> str:
    """Async SQLite URL for a fresh database file per test."""
    return f"sqlite+aiosqlite:///{tmp_path / 'store.db'}"


@pytest.fixture
def test_settings(store_url) -> Settings:
    return Settings(
        database_url=store_url,
        db_pool_size=5,
        db_max_overflow=0,
        db_pool_timeout=1.0,
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def provider(test_settings):
    """
    Provides a ConnectionProvider whose store has the products table.

    The table is created through the model metadata; the pool is disposed
    after the test.
    """
    provider = ConnectionProvider.from_settings(test_settings)
    async with provider.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield provider
    await provider.dispose()


@pytest_asyncio.fixture
async def bare_provider(test_settings):
    """Provides a ConnectionProvider on a store where no table exists."""
    provider = ConnectionProvider.from_settings(test_settings)
    yield provider
    await provider.dispose()


@pytest.fixture
def test_app(test_settings, provider):
    return create_app(settings=test_settings, provider=provider)


@pytest_asyncio.fixture
async def test_client(test_app):
    """
    Provides an async HTTP test client for endpoint testing.

    Usage:
        async def test_greeting(test_client):
            response = await test_client.get("/")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def mock_connection():
    """
    Provides a mock async connection.

    Usage:
        mock_connection.execute.return_value.fetchall.return_value = rows
        result = await service.list_products(mock_connection)
    """
    conn = AsyncMock()
    conn.execute = AsyncMock()
    conn.close = AsyncMock()
    return conn
