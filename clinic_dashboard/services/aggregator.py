"""Single-pass appointment aggregation for the dashboard."""

import math
from collections.abc import Iterable
from dataclasses import dataclass, field

from clinic_dashboard.schemas import Appointment, AppointmentStatus
from clinic_dashboard.services.time_windows import TimeWindows

# Statuses reported in the breakdown; anything else only counts towards the total.
BREAKDOWN_STATUSES = frozenset({
    AppointmentStatus.CONFIRMED,
    AppointmentStatus.PENDING,
    AppointmentStatus.FINISHED,
    AppointmentStatus.NO_SHOW,
    AppointmentStatus.CANCELED,
})


@dataclass
class AggregatedCounters:
    """Raw, unrounded counters produced by one pass over the appointments."""

    today_count: int = 0
    yesterday_count: int = 0
    completed_this_month: int = 0
    completed_last_month: int = 0
    patients_last_month: set[str] = field(default_factory=set)
    booked_week_slots: list[int] = field(default_factory=lambda: [0] * 7)
    today_by_status: dict[AppointmentStatus, int] = field(default_factory=dict)


def slots_for_duration(duration_minutes: int, slot_duration_minutes: int) -> int:
    """Slots occupied by an appointment; partial slots count as whole ones."""
    return math.ceil(duration_minutes / slot_duration_minutes)


def aggregate_appointments(
    appointments: Iterable[Appointment],
    windows: TimeWindows,
    slot_duration_minutes: int,
) -> AggregatedCounters:
    """
    Classify every appointment against all windows in one forward pass.

    Each appointment is tested once per window instead of filtering the whole
    collection per KPI. An appointment books slots on at most one week day.

    Args:
        appointments: Records to aggregate; never modified
        windows: Boundaries resolved for the reference instant
        slot_duration_minutes: Slot granularity used to convert durations

    Returns:
        Fresh counters owned by the caller
    """
    counters = AggregatedCounters()

    for appointment in appointments:
        when = appointment.date
        finished = appointment.status is AppointmentStatus.FINISHED

        if windows.today.contains(when):
            counters.today_count += 1
            if appointment.status in BREAKDOWN_STATUSES:
                counters.today_by_status[appointment.status] = (
                    counters.today_by_status.get(appointment.status, 0) + 1
                )

        if windows.yesterday.contains(when):
            counters.yesterday_count += 1

        if finished and windows.this_month.contains(when):
            counters.completed_this_month += 1

        in_last_month = windows.last_month.contains(when)
        if finished and in_last_month:
            counters.completed_last_month += 1
        if in_last_month:
            counters.patients_last_month.add(appointment.patient_id)

        for index, day in enumerate(windows.this_week):
            if day.contains(when):
                counters.booked_week_slots[index] += slots_for_duration(
                    appointment.duration_minutes, slot_duration_minutes
                )
                break

    return counters
