"""
FastAPI application factory and main app configuration.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
import logging

from .api.errors import APIError
from .api.routers import health, lab, notes, prescriptions, telemedicine
from .api.utils.responses import error_response
from .core.config import get_settings
from .core.container import ServiceNames, get_container, register_singleton
from .core.exceptions import ConfigurationError
from .core.structured_logger import configure_logging
from .domain.errors import DomainError, EditNotAllowedError
from .middleware.auth_middleware import AuthenticationMiddleware
from .middleware.performance_middleware import PerformanceMiddleware
from .middleware.request_id_middleware import RequestIDMiddleware

logger = logging.getLogger("homecare")


async def connect_database(settings) -> None:
    """Open the Motor client, initialise Beanie and register both in the container."""
    from beanie import init_beanie
    from motor.motor_asyncio import AsyncIOMotorClient
    import certifi

    from .adapters.db.mongo.models.user_profile_m import UserProfileMongo

    mongo_uri = settings.database.uri
    if not mongo_uri:
        raise ConfigurationError("MongoDB URI is required. Please set MONGO_URI environment variable.")

    # Enable TLS only for Atlas SRV URIs
    if mongo_uri.startswith("mongodb+srv://"):
        client = AsyncIOMotorClient(
            mongo_uri,
            serverSelectionTimeoutMS=settings.database.server_selection_timeout_ms,
            tls=True,
            tlsCAFile=certifi.where(),
            tlsAllowInvalidCertificates=False,
        )
    else:
        client = AsyncIOMotorClient(
            mongo_uri,
            serverSelectionTimeoutMS=settings.database.server_selection_timeout_ms,
        )

    db = client[settings.database.db_name]
    await init_beanie(database=db, document_models=[UserProfileMongo])

    register_singleton(ServiceNames.MONGO_CLIENT, client)
    register_singleton(ServiceNames.DATABASE, db)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings = get_settings()
    logger.info(f"🚀 Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"📊 Environment: {settings.app_env}")
    logger.info(f"🔧 Debug mode: {settings.debug}")

    try:
        await connect_database(settings)
        logger.info("✅ Database connection established")
    except Exception as e:
        logger.error(f"❌ Database connection failed: {e}", exc_info=True)
        raise  # Re-raise to fail startup

    if settings.patient_ids.debug:
        logger.info("🔍 Patient id resolution diagnostics enabled")

    yield

    # Shutdown
    logger.info(f"🛑 Shutting down {settings.app_name}")
    client = get_container().get_or_none(ServiceNames.MONGO_CLIENT)
    if client is not None:
        client.close()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()
    configure_logging(settings.logging)

    app = FastAPI(
        title=settings.app_name,
        description="Clinical record access for patients and home-care staff",
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Starlette runs the last added middleware first: request id, then
    # timing, then authentication.
    app.add_middleware(AuthenticationMiddleware)
    app.add_middleware(PerformanceMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.allowed_origins,
        allow_credentials=settings.cors.allow_credentials and settings.cors.allowed_origins != ["*"],
        allow_methods=settings.cors.allowed_methods,
        allow_headers=settings.cors.allowed_headers,
        max_age=600,
        expose_headers=["X-Request-ID", "X-Process-Time"],
    )

    app.include_router(health.router)
    app.include_router(prescriptions.router)
    app.include_router(lab.router)
    app.include_router(notes.router)
    app.include_router(telemedicine.router)

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        if isinstance(exc, EditNotAllowedError):
            logger.warning(f"Edit refused on {request.url.path}: {exc.error}")
            return error_response(
                request, 403, exc.error_code, exc.message, {"reason": exc.error, **exc.details}
            )
        return error_response(request, 400, exc.error_code or "DOMAIN_ERROR", exc.message, exc.details)

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        req_id = getattr(request.state, "request_id", None)
        logger.error(f"APIError: {exc.code} ({exc.http_status}) {exc.message} | request_id={req_id}")
        return error_response(request, exc.http_status, exc.code, exc.message, exc.details)

    @app.exception_handler(RequestValidationError)
    async def pydantic_error_handler(request: Request, exc: RequestValidationError):
        req_id = getattr(request.state, "request_id", None)
        error_details = jsonable_encoder(exc.errors())
        logger.error(f"ValidationError on {request.method} {request.url.path}: {error_details} | request_id={req_id}")

        error_messages = []
        for error in error_details:
            loc = " -> ".join(str(x) for x in error.get("loc", []))
            msg = error.get("msg", "Validation error")
            error_messages.append(f"{loc}: {msg}")

        return error_response(
            request,
            422,
            "INVALID_INPUT",
            f"Input validation failed: {'; '.join(error_messages)}",
            {"errors": error_details, "path": request.url.path},
        )

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception):
        req_id = getattr(request.state, "request_id", None)
        logger.error(f"Unhandled error: {type(exc)} | request_id={req_id}", exc_info=exc)
        return error_response(
            request, 500, "INTERNAL_ERROR", "An unexpected error has occurred. Please try again later."
        )

    @app.get("/", tags=["health"])
    async def root():
        """Root endpoint with API information."""
        return {
            "service": settings.app_name,
            "version": settings.app_version,
            "environment": settings.app_env,
            "status": "running",
            "docs": "/docs",
            "endpoints": {
                "health": "/health",
                "prescriptions": "/patients/{patient_id}/prescriptions",
                "lab_requests": "/patients/{patient_id}/lab_requests",
                "lab_results": "/patients/{patient_id}/lab_requests/{lab_id}/results",
                "notes": "/patients/{patient_id}/notes",
                "appointments": "/telemedicine/appointments",
                "call_logs": "/telemedicine/call-logs",
                "availability": "/telemedicine/availability",
            },
        }

    return app


# Create the app instance
app = create_app()
