"""
Storefront API: Route Table
=============================

What:  The immutable (method, path) → handler table and its mounting onto
       the FastAPI application.
How:   Handlers register at startup; mount() freezes the table and adds one
       FastAPI route per entry, each wrapped in a guard that turns unexpected
       failures into a generic 500 response.
Who:   Assembled by main.build_route_table(); mounted by main.create_app().
When:  Built once at process start; read-only for the process lifetime.

Registration Rules:
    - method: one of GET, HEAD, POST, PUT, PATCH, DELETE, OPTIONS (any case)
    - path:   starts with "/", URL path characters only, {param} allowed
    - placeholders must use a known converter ({id}, {id:int}, ...)
    - a (method, path) pair may be registered once
      (placeholder names do not count: /a/{x} and /a/{y} collide)
    - nothing may be registered after mount()
    Violations raise StartupError, so a bad table stops the process before
    it serves anything.
"""

import logging
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Protocol, Tuple

from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response
from starlette.routing import compile_path

from storefront.exceptions import RequestError, StartupError
from storefront.middleware.request_id import request_id_var
from storefront.schemas.errors import error_response

logger = logging.getLogger(__name__)

ALLOWED_METHODS = frozenset({"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"})

_PATH_PATTERN = re.compile(r"^/[A-Za-z0-9\-._~!$&'()*+,;=:@%/{}]*$")
_PARAM_PATTERN = re.compile(r"\{[a-zA-Z_][a-zA-Z0-9_]*(?::([a-zA-Z_][a-zA-Z0-9_]*))?\}")


class RequestHandler(Protocol):
    """Capability shared by every routable handler."""

    async def handle(self, request: Request) -> Response:
        ...


@dataclass(frozen=True)
class RouteEntry:
    """One (method, path) → handler association."""
    method: str
    path: str
    handler: RequestHandler

    @property
    def name(self) -> str:
        return f"{self.method} {self.path}"


class RouteTable:
    """
    Ordered, write-once collection of RouteEntry values.

    Example:
        table = RouteTable()
        table.register("GET", "/", GreetingHandler())
        table.mount(app)
    """

    def __init__(self) -> None:
        self._entries: Dict[Tuple[str, str], RouteEntry] = {}
        self._frozen = False

    @property
    def entries(self) -> List[RouteEntry]:
        return list(self._entries.values())

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self, method: str, path: str, handler: RequestHandler) -> RouteEntry:
        """
        Add a route.

        Raises:
            StartupError: invalid method or path, duplicate (method, path),
                          or the table is already mounted.
        """
        if self._frozen:
            raise StartupError(
                message="Route table is already mounted",
                context={"method": method, "path": path},
            )

        normalized = method.upper()
        if normalized not in ALLOWED_METHODS:
            raise StartupError(
                message=f"Unsupported HTTP method '{method}'",
                context={"method": method, "path": path},
            )
        if not isinstance(path, str) or not _PATH_PATTERN.match(path):
            raise StartupError(
                message=f"Invalid route path {path!r}",
                context={"method": normalized, "path": path},
            )

        try:
            compile_path(path)
        except (AssertionError, ValueError) as e:
            raise StartupError(
                message=f"Invalid route path {path!r}: {e}",
                context={"method": normalized, "path": path},
            ) from e

        key = (normalized, _route_shape(path))
        if key in self._entries:
            raise StartupError(
                message=f"Duplicate route {normalized} {path}",
                context={"method": normalized, "path": path},
            )

        entry = RouteEntry(method=normalized, path=path, handler=handler)
        self._entries[key] = entry
        logger.debug("Registered route %s -> %s", entry.name, type(handler).__name__)
        return entry

    def mount(self, app: FastAPI) -> None:
        """Freeze the table and add every entry to the application."""
        self._frozen = True
        for entry in self._entries.values():
            app.add_api_route(
                entry.path,
                _guard(entry),
                methods=[entry.method],
                name=entry.name,
                include_in_schema=False,
            )


def _route_shape(path: str) -> str:
    """Path with each placeholder reduced to its converter: /a/{x:int} -> /a/{int}."""
    return _PARAM_PATTERN.sub(lambda m: "{%s}" % (m.group(1) or "str"), path)


def _guard(entry: RouteEntry) -> Callable[[Request], Awaitable[Response]]:
    """
    Wrap a handler so dispatch never propagates an unexpected failure.

    RequestError subclasses and HTTP exceptions are re-raised for the
    exception handlers in main.py. Anything else is logged with its
    traceback and answered with a generic 500; the traceback never reaches
    the client.
    """
    handler = entry.handler

    async def endpoint(request: Request) -> Response:
        try:
            return await handler.handle(request)
        except (RequestError, StarletteHTTPException):
            raise
        except Exception:
            rid = request_id_var.get("")
            logger.error("[%s] Unhandled error in %s", rid, entry.name, exc_info=True)
            return error_response(
                500,
                "internal_server_error",
                "An unexpected error occurred. Please try again later.",
                rid,
            )

    return endpoint
