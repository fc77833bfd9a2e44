"""
Authentication middleware - validates authentication before request processing.

Every record endpoint requires an authenticated caller. Public endpoints
(health checks, docs) are excluded from authentication requirements.
"""
from fastapi import Request, HTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from ..api.utils.responses import error_response
from ..core.auth import get_auth_service
import logging

logger = logging.getLogger(__name__)


class AuthenticationMiddleware(BaseHTTPMiddleware):
    """
    Middleware to enforce authentication on record endpoints.

    Public endpoints (health checks, API docs) are excluded.
    All other endpoints require valid authentication.
    """

    PUBLIC_PATHS = {
        "/",
        "/favicon.ico",
        "/docs",
        "/redoc",
        "/openapi.json",
        "/health",
        "/health/live",
        "/health/ready",
        "/health/detailed",
    }

    PUBLIC_PATH_PREFIXES = {
        "/docs",
        "/redoc",
    }

    def is_public_endpoint(self, path: str) -> bool:
        """Check if endpoint is public and doesn't require authentication."""
        normalized_path = path.rstrip("/") or "/"

        if normalized_path in self.PUBLIC_PATHS:
            return True

        for prefix in self.PUBLIC_PATH_PREFIXES:
            if path.startswith(prefix + "/"):
                return True

        return False

    async def dispatch(self, request: Request, call_next):
        """
        Process request and enforce authentication for non-public endpoints.

        The caller's auth id is stored on ``request.state.user_id``.
        """
        if request.method == "OPTIONS" or self.is_public_endpoint(request.url.path):
            logger.debug(f"Public endpoint accessed: {request.url.path}")
            return await call_next(request)

        auth_service = get_auth_service()

        api_key = request.headers.get("X-API-Key")
        auth_header = request.headers.get("Authorization")

        try:
            user_id = auth_service.get_user_from_request(
                api_key=api_key,
                auth_header=auth_header
            )
            request.state.user_id = user_id
            logger.debug(f"✅ Authenticated user: {user_id} accessing {request.url.path}")

        except HTTPException as e:
            logger.warning(
                f"❌ Authentication failed for {request.method} {request.url.path}: {e.detail} "
                f"(IP: {request.client.host if request.client else 'unknown'})"
            )
            response = error_response(
                request,
                401,
                "UNAUTHORIZED",
                "Authentication required for this endpoint",
                {
                    "path": request.url.path,
                    "method": request.method,
                    "reason": e.detail,
                    "hint": "Provide X-API-Key header or Authorization Bearer token",
                },
            )
            response.headers["WWW-Authenticate"] = "Bearer"
            return response

        return await call_next(request)
