"""
Storefront API: Services Layer
================================

What:  Store-facing logic between the handlers (HTTP) and the database.

Service Inventory:
    - ProductService: ordered product listing and row mapping
"""
