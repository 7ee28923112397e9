"""
Shared FastAPI dependencies.
"""
from fastapi import HTTPException, Request

from ..container import ServiceContainer


def get_services(request: Request) -> ServiceContainer:
    """Get the service container from app state."""
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=503, detail="Services not initialized")
    return services


def paginate(items: list, page: int, limit: int) -> dict:
    """Slice ``items`` and describe the page."""
    total = len(items)
    start = (page - 1) * limit
    return {
        "items": items[start:start + limit],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": (total + limit - 1) // limit,
        },
    }


__all__ = ['get_services', 'paginate']
