"""Percentage change, trend direction and comparison text for KPIs."""

import math
from enum import Enum

from clinic_dashboard.schemas import ComparisonLocale, MetricWithTrend, TrendDirection

# Changes within this band (inclusive) are reported as stable.
TREND_DEAD_BAND = 2.0
# Changes smaller than this are rendered as "equal".
EQUAL_THRESHOLD = 1.0


class ComparisonPeriod(str, Enum):
    """Period a KPI is compared against."""
    PREVIOUS_DAY = "previous_day"
    PREVIOUS_MONTH = "previous_month"


_PERIOD_LABELS: dict[ComparisonLocale, dict[ComparisonPeriod, str]] = {
    ComparisonLocale.EN: {
        ComparisonPeriod.PREVIOUS_DAY: "yesterday",
        ComparisonPeriod.PREVIOUS_MONTH: "last month",
    },
    ComparisonLocale.PT_BR: {
        ComparisonPeriod.PREVIOUS_DAY: "ontem",
        ComparisonPeriod.PREVIOUS_MONTH: "mês ant.",
    },
}

_EQUAL_TEMPLATES: dict[ComparisonLocale, str] = {
    ComparisonLocale.EN: "equal to {period}",
    ComparisonLocale.PT_BR: "Igual {period}",
}

_CHANGE_TEMPLATE = "{sign}{percent}% vs {period}"


def round_half_away_from_zero(value: float) -> int:
    """Round to the nearest integer, ties away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def change_percent(current: float, previous: float) -> float:
    """
    Percentage change from ``previous`` to ``current``.

    A zero (or negative) previous value never divides: growth from nothing is
    100%, nothing to nothing is 0%.
    """
    if previous > 0:
        return (current - previous) / previous * 100
    return 100.0 if current > 0 else 0.0


def trend_direction(change: float) -> TrendDirection:
    if change > TREND_DEAD_BAND:
        return TrendDirection.UP
    if change < -TREND_DEAD_BAND:
        return TrendDirection.DOWN
    return TrendDirection.STABLE


def period_label(period: ComparisonPeriod, locale: ComparisonLocale = ComparisonLocale.EN) -> str:
    return _PERIOD_LABELS[locale][period]


def format_comparison(
    change: float,
    period: ComparisonPeriod,
    locale: ComparisonLocale = ComparisonLocale.EN,
) -> str:
    """Human-readable comparison, e.g. ``+20% vs yesterday``."""
    label = period_label(period, locale)
    if abs(change) < EQUAL_THRESHOLD:
        return _EQUAL_TEMPLATES[locale].format(period=label)

    sign = "+" if change > 0 else ""
    return _CHANGE_TEMPLATE.format(sign=sign, percent=round_half_away_from_zero(change), period=label)


def calculate_trend(
    current: int | float,
    previous: int | float,
    period: ComparisonPeriod,
    locale: ComparisonLocale = ComparisonLocale.EN,
) -> MetricWithTrend:
    """Build a KPI value with its change against the previous period."""
    change = change_percent(current, previous)
    return MetricWithTrend(
        value=current,
        previous_value=previous,
        change_percent=change,
        trend=trend_direction(change),
        comparison_text=format_comparison(change, period, locale),
    )
