"""Dashboard API routes exposing the metrics engine to host applications."""

from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import ValidationError

from clinic_dashboard.core.config import Settings, settings
from clinic_dashboard.core.exceptions import ConfigurationException
from clinic_dashboard.core.logging import get_logger, log_error
from clinic_dashboard.schemas import DashboardConfig, DashboardMetrics, DashboardMetricsRequest
from clinic_dashboard.services.dashboard_metrics import compute_dashboard_metrics

logger = get_logger(__name__)

router = APIRouter()


def get_settings() -> Settings:
    """Settings dependency, overridable in tests."""
    return settings


def get_dashboard_config(app_settings: Settings = Depends(get_settings)) -> DashboardConfig:
    """Build the engine configuration, reporting bad clinic settings as a configuration error."""
    try:
        return app_settings.dashboard_config()
    except (ValidationError, ValueError) as e:
        log_error(logger, e, context={"stage": "dashboard_config"})
        raise ConfigurationException(
            "Invalid clinic configuration",
            context={"reason": str(e)}
        ) from e


def localize(instant: datetime, app_settings: Settings) -> datetime:
    """Interpret naive datetimes in the clinic timezone."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=app_settings.clinic_tz)
    return instant


@router.post(
    "/dashboard/metrics",
    response_model=DashboardMetrics,
    status_code=status.HTTP_200_OK,
    summary="Compute dashboard metrics",
    description="Compute today's appointments, active patients, revenue, occupancy and status breakdown "
                "for the supplied appointment and patient snapshot."
)
async def dashboard_metrics(
    payload: DashboardMetricsRequest,
    config: DashboardConfig = Depends(get_dashboard_config),
    app_settings: Settings = Depends(get_settings),
) -> DashboardMetrics:
    """Compute the dashboard snapshot for the posted records."""
    now = localize(payload.now, app_settings) if payload.now else datetime.now(app_settings.clinic_tz)
    appointments = [
        appointment if appointment.date.tzinfo is not None
        else appointment.model_copy(update={"date": localize(appointment.date, app_settings)})
        for appointment in payload.appointments
    ]

    metrics = compute_dashboard_metrics(
        appointments,
        payload.patients,
        config,
        now,
        loading=payload.loading,
    )

    logger.info(
        "Dashboard metrics served",
        appointments=len(appointments),
        patients=len(payload.patients),
        reference=now.isoformat(),
    )
    return metrics


@router.get(
    "/dashboard/config",
    response_model=DashboardConfig,
    summary="Effective dashboard configuration",
    description="Working hours, average ticket, occupancy target and locale used for metric computation."
)
async def dashboard_config(config: DashboardConfig = Depends(get_dashboard_config)) -> DashboardConfig:
    """Return the configuration the engine is computing with."""
    return config
