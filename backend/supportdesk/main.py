"""
FastAPI application entry point.
Version: 1.0.0
"""
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.routes import admin, auth, health, support
from .config import Settings, StoreType, settings
from .container import ServiceContainer
from .exceptions import PersistenceFailure, SupportDeskError
from .utils.middleware import RateLimitMiddleware, RequestIDMiddleware, TimingMiddleware
from .utils.telemetry import metrics_collector, setup_telemetry

# Configure structured logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO) if not settings.debug else logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)

logger = logging.getLogger(__name__)


async def perform_startup_checks(services: ServiceContainer) -> None:
    """
    Perform critical health checks on startup.

    Raises:
        RuntimeError: If the store is unreachable
    """
    checks = []
    critical_failures = []

    store_type = type(services.store).__name__
    try:
        if await services.store.ping():
            checks.append(f"{store_type}: ✓")
        else:
            checks.append(f"{store_type}: ✗")
            critical_failures.append(f"{store_type} unavailable")
    except Exception as e:
        logger.error(f"Store check failed: {e}")
        checks.append(f"{store_type}: ✗")
        critical_failures.append(f"Store error: {e}")

    checks.append(f"Completion provider: {services.provider.name}")

    logger.info("Startup health checks:")
    for check in checks:
        logger.info(f"  {check}")

    if critical_failures:
        logger.error("CRITICAL STARTUP FAILURES:")
        for failure in critical_failures:
            logger.error(f"  - {failure}")

        raise RuntimeError(
            f"Application startup failed due to critical issues: {', '.join(critical_failures)}"
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle events.
    Build services and seed data on startup, release connections on shutdown.
    """
    app_settings: Settings = app.state.settings

    # === STARTUP ===
    try:
        logger.info("=" * 60)
        logger.info(f"Starting {app_settings.app_name} v{app_settings.app_version}")
        logger.info(f"Environment: {app_settings.environment}")
        logger.info(f"Debug mode: {app_settings.debug}")
        logger.info("=" * 60)

        for warning in app_settings.validate_configuration():
            logger.warning(f"Configuration: {warning}")

        services: Optional[ServiceContainer] = getattr(app.state, "services", None)
        if services is None:
            logger.info("Initializing services...")
            services = ServiceContainer.build(app_settings)
            app.state.services = services
        logger.info(f"✓ Store: {type(services.store).__name__}")
        logger.info(f"✓ Completion provider: {services.provider.name}")

        await perform_startup_checks(services)
        await services.startup()

        logger.info("=" * 60)
        logger.info("✓ Application started successfully")
        logger.info(f"API docs: http://{app_settings.api_host}:{app_settings.api_port}/docs")
        logger.info(f"Health check: http://{app_settings.api_host}:{app_settings.api_port}/health")
        logger.info("=" * 60)

    except Exception as e:
        logger.error(f"Failed to start application: {e}", exc_info=True)
        raise

    yield  # === APPLICATION RUNS HERE ===

    # === SHUTDOWN ===
    logger.info("=" * 60)
    logger.info("Shutting down application...")
    logger.info("=" * 60)

    try:
        await app.state.services.aclose()
        logger.info("✓ Services closed")
    except Exception as e:
        logger.error(f"Error during service cleanup: {e}", exc_info=True)

    logger.info("✓ Application shutdown complete")


# ===========================
# Exception handlers
# ===========================

def _error_response(request: Request, status_code: int, error: str, code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": error,
            "code": code,
            "request_id": getattr(request.state, "request_id", None),
        },
    )


async def supportdesk_exception_handler(request: Request, exc: SupportDeskError) -> JSONResponse:
    """Render domain errors with the status they carry."""
    request_id = getattr(request.state, "request_id", None)

    if isinstance(exc, PersistenceFailure):
        logger.error(
            f"Persistence failure in request {request_id}: {exc.message}",
            exc_info=exc.cause or exc,
            extra={"request_id": request_id, "path": request.url.path},
        )
        metrics_collector.record_error()
        return _error_response(
            request,
            exc.status_code,
            "Service temporarily unavailable. Please try again later.",
            exc.error_code,
        )

    logger.info(
        f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}",
        extra={"request_id": request_id},
    )
    return _error_response(request, exc.status_code, exc.message, exc.error_code)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error_response(request, exc.status_code, str(exc.detail), "http_error")


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    detail = f"{location}: {first.get('msg')}" if location else str(first.get("msg", "Invalid request"))
    return _error_response(request, 400, detail, "invalid_request")


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle uncaught exceptions gracefully.

    Returns:
        JSON error response
    """
    request_id = getattr(request.state, "request_id", None)
    logger.error(
        f"Unhandled exception in request {request_id}: {exc}",
        exc_info=True,
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
            "client": request.client.host if request.client else "unknown",
        },
    )
    metrics_collector.record_error()

    app_settings: Settings = request.app.state.settings
    return _error_response(
        request,
        500,
        str(exc) if app_settings.debug else "An unexpected error occurred",
        "internal_error",
    )


# ===========================
# Application factory
# ===========================

def create_app(
    app_settings: Optional[Settings] = None,
    services: Optional[ServiceContainer] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        app_settings: Settings to use instead of the environment
        services: Prebuilt service container (tests)

    Returns:
        Configured FastAPI application
    """
    app_settings = app_settings or settings

    app = FastAPI(
        title=app_settings.app_name,
        version=app_settings.app_version,
        description="Customer support chat with FAQ answers, AI replies and escalation to human agents",
        lifespan=lifespan,
        docs_url="/docs" if app_settings.debug else None,
        redoc_url="/redoc" if app_settings.debug else None,
        openapi_url="/openapi.json" if app_settings.debug else None,
    )
    app.state.settings = app_settings
    if services is not None:
        app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Process-Time", "X-RateLimit-Limit"],
    )

    # Applied in reverse: request id is assigned before rate limiting runs
    if app_settings.rate_limit_enabled:
        app.add_middleware(
            RateLimitMiddleware,
            calls=app_settings.rate_limit_requests,
            period=app_settings.rate_limit_period,
        )
    app.add_middleware(TimingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    if app_settings.enable_telemetry:
        setup_telemetry(app)

    app.add_exception_handler(SupportDeskError, supportdesk_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    prefix = app_settings.api_prefix.rstrip("/")
    app.include_router(health.router, prefix="/health", tags=["Health"])
    app.include_router(support.router, prefix=f"{prefix}/support", tags=["Support"])
    app.include_router(auth.router, prefix=f"{prefix}/auth", tags=["Auth"])
    app.include_router(admin.router, prefix=f"{prefix}/admin", tags=["Admin"])

    @app.get("/", tags=["Root"])
    async def root(request: Request) -> Dict[str, Any]:
        """
        Root endpoint with API information.

        Returns:
            API information, version, and system status
        """
        current: Optional[ServiceContainer] = getattr(request.app.state, "services", None)
        return {
            "name": app_settings.app_name,
            "version": app_settings.app_version,
            "environment": app_settings.environment,
            "status": "operational",
            "endpoints": {
                "docs": "/docs" if app_settings.debug else "disabled",
                "health": "/health",
                "metrics": "/metrics" if app_settings.enable_telemetry else "disabled",
                "api": prefix,
            },
            "store": type(current.store).__name__ if current else None,
            "completion_provider": current.provider.name if current else None,
            "features": {
                "redis_store": app_settings.store_type == StoreType.REDIS,
                "rate_limiting": app_settings.rate_limit_enabled,
                "telemetry": app_settings.enable_telemetry,
            },
            "metrics": metrics_collector.get_stats(),
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "supportdesk.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
        access_log=True,
    )
