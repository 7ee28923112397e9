"""
Custom middleware for request processing.
"""
import logging
import time
import uuid
from typing import Callable, List

from cachetools import TTLCache
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

SLOW_REQUEST_SECONDS = 1.0


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Add unique request ID to each request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        logger.debug(
            f"Request started: {request.method} {request.url.path}",
            extra={"request_id": request_id},
        )

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        return response


class TimingMiddleware(BaseHTTPMiddleware):
    """Add request timing information."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()

        response = await call_next(request)

        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = f"{process_time:.4f}"

        if process_time > SLOW_REQUEST_SECONDS:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} "
                f"took {process_time:.2f}s",
                extra={"request_id": getattr(request.state, "request_id", None)},
            )

        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Sliding-window rate limiting per client.

    Client windows live in a TTLCache so idle clients are evicted after one
    period without a request.
    """

    def __init__(self, app, calls: int = 100, period: int = 60, max_clients: int = 10000):
        super().__init__(app)
        self.calls = calls
        self.period = period
        self.clients: TTLCache = TTLCache(maxsize=max_clients, ttl=period)

    def _get_client_id(self, request: Request) -> str:
        auth = request.headers.get("Authorization")
        if auth:
            return f"token:{auth[-32:]}"

        client = request.client
        return client.host if client else "unknown"

    def _is_rate_limited(self, client_id: str) -> bool:
        now = time.monotonic()
        cutoff = now - self.period

        window: List[float] = [t for t in self.clients.get(client_id, []) if t > cutoff]

        if len(window) >= self.calls:
            self.clients[client_id] = window
            return True

        window.append(now)
        self.clients[client_id] = window
        return False

    def remaining(self, client_id: str) -> int:
        return max(self.calls - len(self.clients.get(client_id, [])), 0)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path.startswith("/health"):
            return await call_next(request)

        client_id = self._get_client_id(request)

        if self._is_rate_limited(client_id):
            logger.warning(f"Rate limit exceeded for client: {client_id}")
            return JSONResponse(
                status_code=429,
                content={
                    "success": False,
                    "error": "Rate limit exceeded. Please try again later.",
                    "code": "rate_limited",
                    "request_id": getattr(request.state, "request_id", None),
                },
                headers={
                    "Retry-After": str(self.period),
                    "X-RateLimit-Limit": str(self.calls),
                    "X-RateLimit-Period": str(self.period),
                },
            )

        response = await call_next(request)

        response.headers["X-RateLimit-Limit"] = str(self.calls)
        response.headers["X-RateLimit-Remaining"] = str(self.remaining(client_id))

        return response


__all__ = ['RequestIDMiddleware', 'TimingMiddleware', 'RateLimitMiddleware']
