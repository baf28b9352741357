"""Helpers shared by the test modules."""

from typing import Iterable, Mapping

from sqlalchemy import insert

from storefront.database import ConnectionProvider
from storefront.models.product import products_table


async def insert_products(provider: ConnectionProvider, rows: Iterable[Mapping]) -> None:
    """Insert rows into the products table in the given order."""
    async with provider.engine.begin() as conn:
        for row in rows:
            await conn.execute(insert(products_table).values(**row))
