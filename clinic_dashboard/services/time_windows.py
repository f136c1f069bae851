"""Calendar boundaries used by the dashboard metrics."""

from dataclasses import dataclass
from datetime import datetime, timedelta

_ONE_DAY = timedelta(days=1)
_ONE_TICK = timedelta(microseconds=1)


@dataclass(frozen=True)
class TimeWindow:
    """Inclusive ``[start, end]`` interval."""

    start: datetime
    end: datetime

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end


@dataclass(frozen=True)
class TimeWindows:
    """All windows needed for one metrics computation."""

    today: TimeWindow
    yesterday: TimeWindow
    this_month: TimeWindow
    last_month: TimeWindow
    this_week: tuple[TimeWindow, ...]


def start_of_day(instant: datetime) -> datetime:
    return instant.replace(hour=0, minute=0, second=0, microsecond=0)


def day_window(day_start: datetime) -> TimeWindow:
    """Window covering the whole calendar day starting at ``day_start``."""
    return TimeWindow(start=day_start, end=day_start + _ONE_DAY - _ONE_TICK)


def resolve_time_windows(now: datetime) -> TimeWindows:
    """
    Derive every calendar boundary from the reference instant.

    ``this_month`` runs from the first of the month up to ``now`` while
    ``last_month`` covers the whole previous month. Week days start on the
    ISO Monday of the week containing ``now``. Boundaries keep ``now``'s
    tzinfo, so naive input yields naive boundaries.
    """
    today_start = start_of_day(now)
    month_start = today_start.replace(day=1)
    last_month_start = (month_start - _ONE_DAY).replace(day=1)
    week_start = today_start - timedelta(days=today_start.weekday())

    return TimeWindows(
        today=day_window(today_start),
        yesterday=day_window(today_start - _ONE_DAY),
        this_month=TimeWindow(start=month_start, end=now),
        last_month=TimeWindow(start=last_month_start, end=month_start - _ONE_TICK),
        this_week=tuple(day_window(week_start + timedelta(days=offset)) for offset in range(7)),
    )
