"""Structured logging configuration using structlog."""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import BoundLogger

from clinic_dashboard.core.config import settings


def add_clinic_context(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Stamp every event with the service, environment and clinic timezone."""
    event_dict.setdefault("service", settings.app_name)
    event_dict.setdefault("environment", settings.env)
    event_dict.setdefault("clinic_timezone", settings.clinic_timezone)
    return event_dict


def configure_logging() -> None:
    """Configure structured logging with JSON output."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            add_clinic_context,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=logging.INFO if not settings.debug else logging.DEBUG,
    )

    # Set log levels for third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str) -> BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def log_request(logger: BoundLogger, method: str, path: str, status_code: int,
                duration: float, request_id: str) -> None:
    """Log HTTP request details."""
    logger.info(
        "HTTP request",
        method=method,
        path=path,
        status_code=status_code,
        duration_ms=round(duration * 1000, 2),
        request_id=request_id,
    )


def log_error(logger: BoundLogger, error: Exception, request_id: str = None,
              context: dict[str, Any] = None) -> None:
    """Log error with enhanced context."""
    logger.error(
        "Application error",
        error=str(error),
        error_type=type(error).__name__,
        request_id=request_id,
        context=context or {}
    )


def log_dashboard_computation(logger: BoundLogger, counters: Any, metrics: Any, appointment_count: int,
                              patient_count: int, duration: float) -> None:
    """Log one dashboard snapshot with the raw counters it was built from."""
    logger.debug(
        "Dashboard metrics computed",
        appointments=appointment_count,
        patients=patient_count,
        today_count=counters.today_count,
        yesterday_count=counters.yesterday_count,
        completed_this_month=counters.completed_this_month,
        completed_last_month=counters.completed_last_month,
        booked_week_slots=list(counters.booked_week_slots),
        occupancy_rate=metrics.occupancy.rate,
        occupancy_status=metrics.occupancy.status.value,
        duration_ms=round(duration * 1000, 3),
    )
