"""
Storefront API: Custom Exception Hierarchy
============================================

What:  Application-specific exceptions for startup and request failures.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) turn request-scoped
       errors into generic JSON responses; the server entry point turns
       startup errors into a non-zero exit status.
Who:   Raised by the connection provider, the product service, the record
       mapper, the route table and the server; caught at the boundaries.

Exception Hierarchy:
    StorefrontError (base)
    ├── StartupError                → fatal, process exits with status 1
    └── RequestError                → 500 Internal Server Error
        ├── StoreUnavailable        (could not obtain a connection)
        │   └── PoolExhausted       (pool wait timed out)
        ├── QueryFailed             (statement failed in the store)
        └── MappingFailed           (row did not convert to a Product)

Security Note:
    `message` of a RequestError is never sent to the client. Responses carry
    a fixed generic text; message and context are logged server-side only.
"""

from typing import Any, Dict, Optional


class StorefrontError(Exception):
    """
    Base exception for all Storefront application errors.

    Attributes:
        message:  Human-readable error description
        context:  Additional debug info (logged, never returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class StartupError(StorefrontError):
    """
    Raised when the service cannot start.

    When:  Bad configuration, a failed socket bind, a database URL the engine
           cannot be built from, or an invalid route table.
    Exit:  The server logs the error and exits with status 1 without serving.
    """

    def __init__(
        self,
        message: str = "Service failed to start",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RequestError(StorefrontError):
    """
    Base for errors scoped to a single request.

    HTTP:  500 Internal Server Error with a generic body.
    Never retried inside the service and never affects other requests.
    """


class StoreUnavailable(RequestError):
    """
    Raised when a connection to the product store cannot be acquired.

    When:  Store unreachable, credentials rejected, driver-level connect error.
    """

    def __init__(
        self,
        message: str = "The product store is unavailable",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PoolExhausted(StoreUnavailable):
    """
    Raised when no pooled connection became free within the pool timeout.

    When:  All pool_size + max_overflow connections stayed checked out for
           longer than db_pool_timeout seconds.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = "No database connection became available"
        if timeout is not None:
            message = f"No database connection became available within {timeout}s"
        ctx = dict(context or {})
        if timeout is not None:
            ctx["timeout"] = timeout
        super().__init__(message=message, context=ctx)
        self.timeout = timeout


class QueryFailed(RequestError):
    """
    Raised when the store rejects or fails a read query.

    When:  Malformed statement, missing table, lost connection mid-query.
    """

    def __init__(
        self,
        message: str = "A database query failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class MappingFailed(RequestError):
    """
    Raised when a store row cannot be converted into a Product.

    When:  A required column is missing, NULL, or holds a value of the wrong
           shape. `fields` lists the offending field names.
    """

    def __init__(
        self,
        message: str = "A store row could not be converted",
        fields: Optional[list] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = dict(context or {})
        if fields:
            ctx["fields"] = fields
        super().__init__(message=message, context=ctx)
        self.fields = fields or []
