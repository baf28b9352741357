"""
Storefront API: Product Service
=================================

What:  Reads the full product list from the store and maps it to Products.
How:   One SELECT ordered by id ascending on a connection supplied by the
       caller, then Product.from_row() on every row.
Who:   Called by the GET /products handler with a connection it acquired
       from the ConnectionProvider.

Design:
    The service is stateless. It receives the connection for each call and
    never opens or closes connections itself; the handler owns the checkout.

Guarantees:
    - Deterministic order (id ascending) so an unchanged table always yields
      identical output
    - All-or-nothing: a single bad row fails the whole listing
"""

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection

from storefront.exceptions import QueryFailed
from storefront.models.product import products_table
from storefront.schemas.product import Product

logger = logging.getLogger(__name__)


class ProductService:
    """Read-only access to the product catalogue."""

    async def list_products(self, conn: AsyncConnection) -> List[Product]:
        """
        Return every product, ordered by identifier ascending.

        Query plan:
            SELECT id, name, stock, price FROM products ORDER BY id ASC

        Args:
            conn: A connection checked out for the current request

        Returns:
            List of Product models (empty when the table is empty)

        Raises:
            QueryFailed:   The statement failed in the store
            MappingFailed: A row could not be converted
        """
        query = select(products_table).order_by(products_table.c.id.asc())

        try:
            result = await conn.execute(query)
            rows = result.fetchall()
        except SQLAlchemyError as e:
            logger.error("Product listing query failed: %s", type(e).__name__)
            raise QueryFailed(
                message="Could not read the product list",
                context={"error_type": type(e).__name__},
            ) from e

        products = [Product.from_row(row) for row in rows]
        logger.debug("Listed %d products", len(products))
        return products


# Stateless; shared by every request
product_service = ProductService()
