"""
Health check API routes.
"""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ...container import ServiceContainer
from ...models import utcnow
from ...models.schemas import HealthResponse
from ..dependencies import get_services

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=HealthResponse)
async def health_check(services: ServiceContainer = Depends(get_services)):
    """
    Basic health check endpoint.

    Returns:
        System health status
    """
    return HealthResponse(
        status="healthy",
        timestamp=utcnow(),
        version=services.settings.app_version,
        services={},
    )


@router.get("/ready", response_model=HealthResponse)
async def readiness_check(services: ServiceContainer = Depends(get_services)):
    """
    Readiness check for the store and completion provider.

    Returns:
        Detailed service health status, 503 when the store is unreachable
    """
    checks = {}
    overall_status = "healthy"

    try:
        if await services.store.ping():
            checks["store"] = "healthy"
        else:
            checks["store"] = "unhealthy"
            overall_status = "unhealthy"
    except Exception as e:
        logger.error(f"Store health check failed: {e}")
        checks["store"] = "unhealthy"
        overall_status = "unhealthy"

    checks["completion_provider"] = services.provider.name
    checks["faq_catalog"] = str(len(services.faq_matcher))

    body = HealthResponse(
        status=overall_status,
        timestamp=utcnow(),
        version=services.settings.app_version,
        services=checks,
    )
    if overall_status != "healthy":
        return JSONResponse(status_code=503, content=body.model_dump(mode="json"))
    return body


@router.get("/live")
async def liveness_check():
    """
    Simple liveness check.

    Returns:
        Basic alive status
    """
    return {"status": "alive", "timestamp": utcnow().isoformat()}
