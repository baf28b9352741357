"""
Storefront API: Route Handlers Package
========================================

What:  Request handlers registered in the route table.

Route Inventory:
    - greeting.py:  GET /          (fixed greeting text)
    - products.py:  GET /products  (full product list)

Every handler exposes `async handle(request) -> Response` and is mounted by
storefront.routing.RouteTable. Handlers stay thin; store access lives in
the services package.
"""
