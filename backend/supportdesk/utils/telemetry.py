"""
Telemetry and monitoring utilities.
"""
import logging
import time

from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

logger = logging.getLogger(__name__)

# Metrics definitions
request_count = Counter(
    'supportdesk_http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

request_duration = Histogram(
    'supportdesk_http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint']
)

# Business metrics
conversation_turns = Counter(
    'supportdesk_conversation_turns_total',
    'User messages handled, by reply source',
    ['source']
)

escalations = Counter(
    'supportdesk_escalations_total',
    'Escalations to human support',
    ['priority', 'reopened']
)

faq_hits = Counter(
    'supportdesk_faq_hits_total',
    'User messages answered from the FAQ catalog',
    ['category']
)

provider_failures = Counter(
    'supportdesk_provider_failures_total',
    'Completion provider failures recovered in place',
    ['operation']
)

admin_actions = Counter(
    'supportdesk_admin_actions_total',
    'Handler actions on escalations',
    ['action']
)

turn_duration = Histogram(
    'supportdesk_turn_duration_seconds',
    'Time to handle one user message',
    ['source']
)


def setup_telemetry(app: FastAPI) -> None:
    """
    Setup telemetry and monitoring for the application.

    Args:
        app: FastAPI application instance
    """
    logger.info("Setting up telemetry...")

    @app.get("/metrics", include_in_schema=False)
    async def metrics():
        """Prometheus metrics endpoint."""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.middleware("http")
    async def track_requests(request, call_next):
        """Track HTTP request metrics."""
        start_time = time.time()

        response = await call_next(request)

        duration = time.time() - start_time
        route = request.scope.get("route")
        endpoint = getattr(route, "path", request.url.path)

        request_count.labels(
            method=request.method,
            endpoint=endpoint,
            status=response.status_code
        ).inc()

        request_duration.labels(
            method=request.method,
            endpoint=endpoint
        ).observe(duration)

        return response

    logger.info("Telemetry setup complete")


def track_turn(source: str, duration: float) -> None:
    """Track a handled user message."""
    conversation_turns.labels(source=source).inc()
    turn_duration.labels(source=source).observe(duration)


def track_escalation(priority: str, reopened: bool = False) -> None:
    escalations.labels(priority=priority, reopened=str(reopened)).inc()


def track_faq_hit(category: str) -> None:
    faq_hits.labels(category=category).inc()


def track_provider_failure(operation: str) -> None:
    provider_failures.labels(operation=operation).inc()


def track_admin_action(action: str) -> None:
    admin_actions.labels(action=action).inc()


class MetricsCollector:
    """Collects and manages in-process application counters."""

    def __init__(self):
        self.start_time = time.time()
        self.turn_count = 0
        self.escalation_count = 0
        self.error_count = 0

    def record_turn(self, escalated: bool = False):
        self.turn_count += 1
        if escalated:
            self.escalation_count += 1

    def record_error(self):
        self.error_count += 1

    def get_stats(self) -> dict:
        """Get current statistics."""
        uptime = time.time() - self.start_time

        return {
            "uptime_seconds": uptime,
            "turns_processed": self.turn_count,
            "escalations": self.escalation_count,
            "errors": self.error_count,
            "turns_per_minute": (self.turn_count / uptime) * 60 if uptime > 0 else 0
        }


# Global metrics collector
metrics_collector = MetricsCollector()


__all__ = [
    'setup_telemetry',
    'track_turn',
    'track_escalation',
    'track_faq_hit',
    'track_provider_failure',
    'track_admin_action',
    'MetricsCollector',
    'metrics_collector',
]
