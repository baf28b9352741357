"""
Storefront API: Greeting Route Handler
========================================

What:  Handles GET / with a fixed plain-text greeting.
Who:   Liveness checks and humans poking the service with curl.
"""

from fastapi import Request
from fastapi.responses import PlainTextResponse

GREETING = "Hello World!"


class GreetingHandler:
    """Returns the fixed greeting. Touches no shared state."""

    async def handle(self, request: Request) -> PlainTextResponse:
        return PlainTextResponse(GREETING)
