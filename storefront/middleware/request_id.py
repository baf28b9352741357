"""
Storefront API: Request ID Middleware
=======================================

What:  Assigns an ID to each incoming request and echoes it in the response.
How:   Accepts the client's X-Request-ID when it is a short token of safe
       characters, otherwise generates 8 hex chars; stores it in a ContextVar
       and on request.state.
Who:   Applied to every request; read by the access logger, the exception
       handlers and the route guard.

Accepted client IDs:
    1-64 characters from [A-Za-z0-9._-]. Anything else (spaces, control
    characters, oversized values) is replaced, so a client cannot inject
    text into log lines or response headers.
"""

import logging
import re
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 64

_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,%d}$" % MAX_REQUEST_ID_LENGTH)

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


def resolve_request_id(supplied: Optional[str]) -> str:
    """Return the client's ID if it is acceptable, else a fresh one."""
    if supplied and _REQUEST_ID_PATTERN.match(supplied):
        return supplied
    rid = new_request_id()
    if supplied:
        logger.debug(
            "Replaced malformed %s (%d chars) with %s",
            REQUEST_ID_HEADER,
            len(supplied),
            rid,
        )
    return rid


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Behavior:
        1. Take X-Request-ID from the request if acceptable, or generate one
        2. Store in ContextVar and request.state
        3. Add X-Request-ID to the response headers
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid

        return response
