"""Main FastAPI application."""

import time
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from clinic_dashboard.api.v1 import api_router
from clinic_dashboard.core.config import settings
from clinic_dashboard.core.exceptions import (
    APIException,
    api_exception_handler,
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from clinic_dashboard.core.logging import configure_logging, get_logger, log_request
from clinic_dashboard.observability.metrics import PrometheusMiddleware, get_metrics, get_metrics_content_type
from clinic_dashboard.schemas import HealthCheck

VERSION = "0.1.0"

# Configure logging
configure_logging()
logger = get_logger(__name__)

# Track application start time
app_start_time = time.time()


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Middleware to add request ID to requests."""

    async def dispatch(self, request: Request, call_next):
        """Add request ID to request and response headers."""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)

        response.headers["X-Request-ID"] = request_id
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to enrich logs with request context."""

    async def dispatch(self, request: Request, call_next):
        """Bind request_id to structlog for the duration of the request."""
        request_id = getattr(request.state, 'request_id', None)
        context_vars = {"request_id": request_id} if request_id else {}

        start_time = time.time()
        with structlog.contextvars.bound_contextvars(**context_vars):
            response = await call_next(request)
            log_request(
                logger,
                request.method,
                request.url.path,
                response.status_code,
                time.time() - start_time,
                request_id,
            )

        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting Clinic Dashboard Metrics", version=VERSION, environment=settings.env)
    yield
    logger.info("Shutting down Clinic Dashboard Metrics")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=VERSION,
    description="Dashboard KPI computation for clinic operations",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Add middleware (last added runs first)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.is_development else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(PrometheusMiddleware)
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestIDMiddleware)

# Add exception handlers
app.add_exception_handler(APIException, api_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

# Include API router
app.include_router(api_router, prefix="/api/v1")


@app.get("/health", response_model=HealthCheck)
async def health_check() -> HealthCheck:
    """Health check endpoint with uptime."""
    uptime = time.time() - app_start_time
    return HealthCheck(
        status="ok",
        message="Clinic Dashboard Metrics is running",
        uptime_seconds=round(uptime, 2),
        version=VERSION,
        environment=settings.env,
    )


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    if not settings.prometheus_enabled:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Metrics not enabled"
        )

    return Response(
        content=get_metrics(),
        media_type=get_metrics_content_type()
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "clinic_dashboard.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )
