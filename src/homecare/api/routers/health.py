"""
Health check endpoints.
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Tuple

from fastapi import APIRouter, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ...core.config import get_settings
from ...core.container import ServiceNames, get_service_or_none
from ..schemas.common import ApiResponse
from ..utils.responses import ok

router = APIRouter(prefix="/health", tags=["health"])

_STARTED_AT = time.monotonic()


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    timestamp: datetime
    version: str
    service: str


async def _ping_database() -> Tuple[bool, str]:
    """Ping MongoDB through the client opened at startup."""
    client = get_service_or_none(ServiceNames.MONGO_CLIENT)
    if client is None:
        return False, "not_connected"
    try:
        await asyncio.wait_for(client.admin.command("ping"), timeout=5.0)
        return True, "ok"
    except Exception as e:
        return False, f"error: {str(e)[:50]}"


def _cache_entries() -> int:
    cache = get_service_or_none(ServiceNames.PATIENT_ID_CACHE)
    return len(cache) if cache is not None else 0


@router.get("", response_model=ApiResponse[HealthResponse])
async def health_check(request: Request):
    """
    Health check endpoint.

    Returns the current status of the service.
    """
    settings = get_settings()
    return ok(request, data=HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=settings.app_version,
        service=settings.app_name,
    ), message="OK")


@router.get("/detailed", response_model=ApiResponse[dict], responses={503: {"description": "A dependency is down"}})
async def detailed_health_check(request: Request):
    """
    Health check with dependency status.

    Answers 503 when MongoDB cannot be reached so load balancers can act on it.
    """
    settings = get_settings()
    database_ok, database_state = await _ping_database()
    dependencies = {
        "mongodb": {"status": "healthy" if database_ok else "unhealthy", "detail": database_state},
        "patient_id_cache": {"status": "healthy", "entries": _cache_entries()},
    }
    body = ok(request, data={
        "status": "healthy" if database_ok else "degraded",
        "service": settings.app_name,
        "version": settings.app_version,
        "timestamp": datetime.now(timezone.utc),
        "uptime_seconds": round(time.monotonic() - _STARTED_AT, 3),
        "dependencies": dependencies,
    }, message="OK" if database_ok else "Some services unavailable")
    return JSONResponse(status_code=200 if database_ok else 503, content=jsonable_encoder(body))


@router.get("/ready", response_model=ApiResponse[dict])
async def readiness_check(request: Request):
    """
    Readiness check endpoint.

    Pings MongoDB through the client opened at startup.
    """
    database_ok, database_state = await _ping_database()
    checks = {
        "database": database_state,
        "patient_id_cache_entries": _cache_entries(),
    }
    status = "ready" if database_ok else "degraded"

    return ok(request, data={
        "status": status,
        "timestamp": datetime.now(timezone.utc),
        "checks": checks,
    }, message="OK" if database_ok else "Some services unavailable")


@router.get("/live", response_model=ApiResponse[dict])
async def liveness_check(request: Request):
    """
    Liveness check endpoint.

    Returns whether the service is alive.
    """
    return ok(request, data={"status": "alive", "timestamp": datetime.now(timezone.utc)}, message="OK")
