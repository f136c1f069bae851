"""Dashboard metrics engine: assembles KPI snapshots from appointment records."""

import time
from collections.abc import Sequence
from datetime import datetime

from clinic_dashboard.core.logging import get_logger, log_dashboard_computation
from clinic_dashboard.observability.metrics import DASHBOARD_COMPUTATION_DURATION, DASHBOARD_COMPUTATIONS
from clinic_dashboard.schemas import (
    Appointment,
    AppointmentBreakdown,
    AppointmentStatus,
    DashboardConfig,
    DashboardMetrics,
    OccupancyMetrics,
    OccupancyStatus,
    Patient,
    RevenueMetrics,
)
from clinic_dashboard.services.aggregator import AggregatedCounters, aggregate_appointments
from clinic_dashboard.services.slot_capacity import week_slot_capacity
from clinic_dashboard.services.time_windows import resolve_time_windows
from clinic_dashboard.services.trends import ComparisonPeriod, calculate_trend, round_half_away_from_zero

logger = get_logger(__name__)

EXCELLENT_OCCUPANCY = 80
GOOD_OCCUPANCY = 60


def occupancy_status(rate: int) -> OccupancyStatus:
    if rate >= EXCELLENT_OCCUPANCY:
        return OccupancyStatus.EXCELLENT
    if rate >= GOOD_OCCUPANCY:
        return OccupancyStatus.GOOD
    return OccupancyStatus.NEEDS_ATTENTION


def build_occupancy(booked_week_slots: Sequence[int], week_capacity: Sequence[int], target: int) -> OccupancyMetrics:
    """Weekly occupancy; each day's bookings are capped at that day's capacity."""
    booked = sum(min(day_booked, capacity) for day_booked, capacity in zip(booked_week_slots, week_capacity))
    total = sum(week_capacity)
    rate = round_half_away_from_zero(booked / total * 100) if total > 0 else 0

    return OccupancyMetrics(
        rate=rate,
        target=target,
        booked_slots=booked,
        total_slots=total,
        status=occupancy_status(rate),
    )


def build_breakdown(today_by_status: dict[AppointmentStatus, int]) -> AppointmentBreakdown:
    return AppointmentBreakdown(
        confirmed=today_by_status.get(AppointmentStatus.CONFIRMED, 0),
        pending=today_by_status.get(AppointmentStatus.PENDING, 0),
        completed=today_by_status.get(AppointmentStatus.FINISHED, 0),
        no_show=today_by_status.get(AppointmentStatus.NO_SHOW, 0),
        canceled=today_by_status.get(AppointmentStatus.CANCELED, 0),
    )


def build_revenue(counters: AggregatedCounters, config: DashboardConfig) -> RevenueMetrics:
    """Revenue estimated from completed appointments and the average ticket."""
    trend = calculate_trend(
        counters.completed_this_month * config.average_ticket,
        counters.completed_last_month * config.average_ticket,
        ComparisonPeriod.PREVIOUS_MONTH,
        config.locale,
    )
    return RevenueMetrics(
        **trend.model_dump(),
        average_ticket=config.average_ticket,
        completed_count=counters.completed_this_month,
    )


def assemble_dashboard_metrics(
    counters: AggregatedCounters,
    patient_count: int,
    week_capacity: Sequence[int],
    config: DashboardConfig,
    loading: bool = False,
) -> DashboardMetrics:
    """Combine aggregated counters into the final snapshot."""
    return DashboardMetrics(
        today_appointments=calculate_trend(
            counters.today_count,
            counters.yesterday_count,
            ComparisonPeriod.PREVIOUS_DAY,
            config.locale,
        ),
        active_patients=calculate_trend(
            patient_count,
            len(counters.patients_last_month),
            ComparisonPeriod.PREVIOUS_MONTH,
            config.locale,
        ),
        revenue=build_revenue(counters, config),
        occupancy=build_occupancy(counters.booked_week_slots, week_capacity, config.occupancy_target),
        breakdown=build_breakdown(counters.today_by_status),
        loading=loading,
    )


def compute_dashboard_metrics(
    appointments: Sequence[Appointment],
    patients: Sequence[Patient],
    config: DashboardConfig,
    now: datetime,
    loading: bool = False,
) -> DashboardMetrics:
    """
    Compute every dashboard KPI for the reference instant ``now``.

    Pure and deterministic: the same records, configuration and instant
    always produce an equal snapshot, and the input collections are only read.

    Appointment dates and ``now`` must agree on awareness: either all carry a
    tzinfo or none does. Mixing naive and aware datetimes raises ``TypeError``
    on comparison; the HTTP layer localizes naive values before calling.

    Args:
        appointments: Appointment snapshot from the scheduling source
        patients: Patient snapshot; only its size is used
        config: Working hours, average ticket, occupancy target and locale
        now: Reference instant; never read from the system clock here
        loading: Passed through so callers can flag partially loaded inputs

    Returns:
        Immutable dashboard snapshot
    """
    start_time = time.perf_counter()

    windows = resolve_time_windows(now)
    working_hours = config.working_hours
    counters = aggregate_appointments(appointments, windows, working_hours.slot_duration_minutes)
    week_capacity = week_slot_capacity(windows.this_week, working_hours)

    metrics = assemble_dashboard_metrics(counters, len(patients), week_capacity, config, loading)

    duration = time.perf_counter() - start_time
    DASHBOARD_COMPUTATIONS.inc()
    DASHBOARD_COMPUTATION_DURATION.observe(duration)
    log_dashboard_computation(logger, counters, metrics, len(appointments), len(patients), duration)
    return metrics
