"""Bookable slot capacity derived from working hours."""

from datetime import date, datetime

from clinic_dashboard.schemas import WorkingHoursConfig
from clinic_dashboard.services.time_windows import TimeWindow


def day_slot_capacity(day: date | datetime, working_hours: WorkingHoursConfig) -> int:
    """Number of bookable slots on ``day``; zero outside the clinic's work days."""
    if day.isoweekday() not in working_hours.work_days:
        return 0

    hours_per_day = working_hours.end_hour - working_hours.start_hour
    return hours_per_day * working_hours.slots_per_hour


def week_slot_capacity(week: tuple[TimeWindow, ...], working_hours: WorkingHoursConfig) -> list[int]:
    """Capacity of each day window in ``week``, in order."""
    return [day_slot_capacity(window.start, working_hours) for window in week]
