"""
Utility modules.
"""
from .middleware import RateLimitMiddleware, RequestIDMiddleware, TimingMiddleware
from .telemetry import MetricsCollector, metrics_collector, setup_telemetry

__all__ = [
    'RequestIDMiddleware',
    'TimingMiddleware',
    'RateLimitMiddleware',
    'setup_telemetry',
    'MetricsCollector',
    'metrics_collector',
]
