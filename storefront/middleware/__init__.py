"""
Storefront API: Middleware Package
====================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Logging] → Route / exception handlers

    Response ← [Request ID] ← [Logging] ← Route / exception handlers

    - Request ID is set before logging runs, so access lines carry it
    - Logging measures the full handler duration and final status
"""
