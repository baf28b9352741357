"""
Storefront API: Application Package
=====================================

What: A small HTTP service with a greeting route and a read-only
      product listing backed by a relational store.
Who:  Imported by uvicorn (via storefront.server), pytest and the CLI.

Layout:
    ┌─────────────────────────────────────┐
    │   Routing (route table, dispatch)   │  ← storefront.routing, storefront.main
    ├─────────────────────────────────────┤
    │        Handlers (routes/)           │  ← HTTP request → response
    ├─────────────────────────────────────┤
    │        Services (services/)         │  ← Query + row mapping
    ├─────────────────────────────────────┤
    │   Models & Schemas (store ↔ wire)   │  ← SQLAlchemy table + Pydantic
    ├─────────────────────────────────────┤
    │   Database (connection provider)    │  ← Async SQLAlchemy pool
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
