"""Prometheus metrics configuration and middleware."""

import re
import time
from collections.abc import Callable

from fastapi import Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

from clinic_dashboard.core.config import settings
from clinic_dashboard.core.logging import get_logger

logger = get_logger(__name__)

# HTTP metrics
REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "endpoint", "status_code", "status_class"]
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint", "status_class"]
)

ACTIVE_CONNECTIONS = Gauge(
    "http_active_connections",
    "Number of active HTTP connections"
)

# Engine metrics
DASHBOARD_COMPUTATIONS = Counter(
    "dashboard_metrics_computations_total",
    "Number of dashboard metrics snapshots computed"
)

DASHBOARD_COMPUTATION_DURATION = Histogram(
    "dashboard_metrics_computation_seconds",
    "Time spent computing one dashboard metrics snapshot",
    buckets=(0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0)
)

DASHBOARD_CACHE_EVENTS = Counter(
    "dashboard_metrics_cache_events_total",
    "Dashboard metrics cache lookups by result",
    ["result"]
)

_UUID_SEGMENT = re.compile(r'/[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}')
_NUMERIC_SEGMENT = re.compile(r'/\d+')


def endpoint_label(path: str) -> str:
    """Normalize endpoint path for metrics labels."""
    path = _UUID_SEGMENT.sub('/{id}', path)
    return _NUMERIC_SEGMENT.sub('/{id}', path)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to collect Prometheus request metrics."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and collect metrics."""
        if not settings.prometheus_enabled:
            return await call_next(request)

        ACTIVE_CONNECTIONS.inc()

        method = request.method
        path = request.url.path
        endpoint = endpoint_label(path)
        request_id = getattr(request.state, 'request_id', 'unknown')

        start_time = time.time()

        try:
            response = await call_next(request)

            status_code = str(response.status_code)
            duration = time.time() - start_time
            status_class = f"{status_code[0]}xx" if len(status_code) >= 3 else "unknown"

            REQUEST_COUNT.labels(
                method=method,
                endpoint=endpoint,
                status_code=status_code,
                status_class=status_class
            ).inc()

            REQUEST_DURATION.labels(
                method=method,
                endpoint=endpoint,
                status_class=status_class
            ).observe(duration)

            return response

        except Exception as e:
            duration = time.time() - start_time

            REQUEST_COUNT.labels(
                method=method,
                endpoint=endpoint,
                status_code="500",
                status_class="5xx"
            ).inc()

            REQUEST_DURATION.labels(
                method=method,
                endpoint=endpoint,
                status_class="5xx"
            ).observe(duration)

            logger.error(
                "HTTP request failed",
                method=method,
                path=path,
                endpoint=endpoint,
                duration_ms=round(duration * 1000, 2),
                error=str(e),
                error_type=type(e).__name__,
                request_id=request_id
            )

            raise

        finally:
            ACTIVE_CONNECTIONS.dec()


def get_metrics() -> bytes:
    """Get Prometheus metrics in text format."""
    return generate_latest()


def get_metrics_content_type() -> str:
    """Get content type for Prometheus metrics."""
    return CONTENT_TYPE_LATEST
