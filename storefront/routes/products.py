"""
Storefront API: Products Route Handler
========================================

What:  Handles GET /products: the full product list as a JSON array.
How:   Acquires a connection from the ConnectionProvider, delegates the query
       and row mapping to ProductService, serializes the result.
Who:   Registered in the route table by main.build_route_table().

Request Flow:
    1. Borrow a connection (StoreUnavailable / PoolExhausted on failure)
    2. SELECT all products ORDER BY id (QueryFailed on failure)
    3. Map each row to a Product (MappingFailed on failure)
    4. Return the connection to the pool
    5. Return 200 with the serialized list

Error responses (handled by global exception handlers):
    HTTP 500: any of the errors above, with a generic body

The request's path, query string and body are not read.
"""

import logging
from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from storefront.database import ConnectionProvider
from storefront.services.product_service import ProductService, product_service

logger = logging.getLogger(__name__)


class ProductListHandler:
    """Lists every product in the store."""

    def __init__(
        self,
        provider: ConnectionProvider,
        service: Optional[ProductService] = None,
    ):
        self.provider = provider
        self.service = service or product_service

    async def handle(self, request: Request) -> JSONResponse:
        return await self.list_products(request)

    async def list_products(self, request: Request) -> JSONResponse:
        """
        Produce the current full list of products.

        The connection is held only for the query and mapping; the response
        body is built after it has been returned to the pool.
        """
        async with self.provider.acquire() as conn:
            products = await self.service.list_products(conn)

        return JSONResponse(
            status_code=200,
            content=[product.model_dump(mode="json") for product in products],
        )
