"""
Response envelopes shared by routers and exception handlers.
"""

from typing import Any, Optional

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from ..schemas.common import ApiResponse, ErrorResponse


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or ""


def ok(request: Request, data: Any = None, message: str = "") -> ApiResponse[Any]:
    return ApiResponse(success=True, message=message, request_id=_request_id(request), data=data)


def fail(request: Request, error: str, message: str, details: Optional[dict] = None) -> ErrorResponse:
    return ErrorResponse(error=error, message=message, request_id=_request_id(request), details=details or {})


def error_response(
    request: Request, status_code: int, error: str, message: str, details: Optional[dict] = None
) -> JSONResponse:
    """JSON error body in the ``ErrorResponse`` shape."""
    body = fail(request, error, message, details)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def server_error(error: str, exc: Exception) -> HTTPException:
    """500 carrying a route-specific error label and the underlying message."""
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error": error, "message": str(exc)},
    )
