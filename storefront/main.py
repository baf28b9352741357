"""
Storefront API: FastAPI Application Factory
=============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() assembles settings, the connection
       provider and the route table into a configured FastAPI instance.
Who:   Called by storefront.server.main(), by tests, and by
       `uvicorn --factory storefront.main:create_app`.
When:  Once at server startup; the returned app handles all requests.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌─────────────────┐                   │
    │  │ Req ID   │→│  Logging        │                   │
    │  └──────────┘ └─────────────────┘                   │
    │                                                     │
    │  Route Table:                                       │
    │  ┌──────────────┐ ┌──────────────────┐              │
    │  │ GET /        │ │ GET /products    │              │
    │  └──────────────┘ └──────────────────┘              │
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ 404/405 → 404 │ RequestError → 500 │ * → 500 │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:   configure logging, log the bind address
    Shutdown:  dispose the connection pool
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront import __version__
from storefront.config import Settings, get_settings
from storefront.database import ConnectionProvider
from storefront.exceptions import RequestError
from storefront.middleware.logging import RequestLoggingMiddleware
from storefront.middleware.request_id import RequestIDMiddleware, request_id_var
from storefront.routes.greeting import GreetingHandler
from storefront.routes.products import ProductListHandler
from storefront.routing import RouteTable
from storefront.schemas.errors import error_response

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called by the server entry point before anything else, and again by the
    lifespan so that `uvicorn --factory` deployments get the same format.
    """
    log_format = (
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )

    # The access middleware already logs every request
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Manage application lifecycle: startup and shutdown procedures.

    Startup:   configure logging and announce the bind address
    Shutdown:  dispose the connection pool (close all pooled connections)
    """
    settings: Settings = app.state.settings
    provider: ConnectionProvider = app.state.connection_provider

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(settings.log_level)
    logger.info("Storefront API %s starting up...", __version__)
    logger.info("Serving at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Storefront API shutting down...")
    await provider.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        HTTP 404 / 405      → 404 Not Found (no handler was invoked)
        other HTTP errors   → same status, standard error body
        RequestError        → 500 Internal Server Error, generic message

    Unexpected exceptions inside handlers are converted by the route guard
    (routing._guard), so they never reach these handlers.

    Security: responses never contain store-internal details. The error
    message and context are logged server-side.
    """

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        """Unmatched (method, path) pairs all answer 404."""
        rid = request_id_var.get("")
        if exc.status_code in (404, 405):
            return error_response(
                404,
                "not_found",
                "The requested resource was not found",
                rid,
            )
        return error_response(exc.status_code, "http_error", str(exc.detail), rid)

    @app.exception_handler(RequestError)
    async def handle_request_error(request: Request, exc: RequestError):
        """Store or mapping failure: generic message to user, details logged."""
        rid = request_id_var.get("")
        logger.error(
            "[%s] %s: %s | Context: %s",
            rid,
            type(exc).__name__,
            exc.message,
            exc.context,
        )
        return error_response(
            500,
            "server_error",
            "An internal error occurred. Please try again later.",
            rid,
        )


# ══════════════════════════════════════════════════════════════════════════
# Route Table & Application Factory
# ══════════════════════════════════════════════════════════════════════════

def build_route_table(provider: ConnectionProvider) -> RouteTable:
    """Assemble the service's routes. Raises StartupError on a bad table."""
    table = RouteTable()
    table.register("GET", "/", GreetingHandler())
    table.register("GET", "/products", ProductListHandler(provider))
    return table


def create_app(
    settings: Optional[Settings] = None,
    provider: Optional[ConnectionProvider] = None,
    route_table: Optional[RouteTable] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Every collaborator can be passed in; anything omitted is built from
    settings. Tests use this to get an isolated app per test case.

    Returns: Fully configured FastAPI instance ready to receive requests.

    Raises:
        StartupError: the provider could not be built or the route table
                      is invalid.
    """
    settings = settings or get_settings()
    if provider is None:
        provider = ConnectionProvider.from_settings(settings)
    if route_table is None:
        route_table = build_route_table(provider)

    app = FastAPI(
        title="Storefront API",
        description="Greeting and read-only product listing service.",
        version=__version__,
        # The route table is the whole HTTP surface
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        redirect_slashes=False,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.connection_provider = provider
    app.state.route_table = route_table

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added executes first: RequestID → Logging → app
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    route_table.mount(app)

    return app
