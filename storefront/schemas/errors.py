"""
Storefront API: Error Response Schema
=======================================

What:  Standardized error body returned by every failing request.
Who:   Built by the exception handlers in main.py and by the route guard
       in routing.py.

Example:
    {
        "error": "not_found",
        "message": "The requested resource was not found",
        "request_id": "a1b2c3d4"
    }
"""

from typing import Optional

from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Fields:
        error: Machine-readable error code (not_found, server_error, ...)
        message: Human-readable description, never containing store detail
        request_id: Correlation ID for tracing this error in server logs
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


def error_response(
    status_code: int,
    error: str,
    message: str,
    request_id: Optional[str] = None,
) -> JSONResponse:
    """Render an ErrorResponse as a JSONResponse with the given status."""
    body = ErrorResponse(error=error, message=message, request_id=request_id or None)
    return JSONResponse(status_code=status_code, content=body.model_dump())
