"""Pydantic v2 schemas for clinic dashboard metrics."""

from datetime import datetime
from enum import Enum, IntEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""
    CONFIRMED = "confirmed"
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    ARRIVED = "arrived"
    FINISHED = "finished"
    NO_SHOW = "no_show"
    CANCELED = "canceled"


class Weekday(IntEnum):
    """ISO weekday numbering, matching ``date.isoweekday()``."""
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6
    SUNDAY = 7


class TrendDirection(str, Enum):
    """Direction of a KPI compared with its previous period."""
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class OccupancyStatus(str, Enum):
    """Occupancy health classification."""
    EXCELLENT = "excellent"
    GOOD = "good"
    NEEDS_ATTENTION = "needs-attention"


class ComparisonLocale(str, Enum):
    """Languages available for comparison texts."""
    EN = "en"
    PT_BR = "pt-BR"


# Base schemas
class BaseSchema(BaseModel):
    """Base schema with common configuration."""
    model_config = ConfigDict(from_attributes=True)


class FrozenSchema(BaseModel):
    """Immutable schema; instances compare and hash by value."""
    model_config = ConfigDict(from_attributes=True, frozen=True)


# Input records
class Appointment(FrozenSchema):
    """Appointment as read from the scheduling data source."""
    id: str
    patient_id: str
    date: datetime
    duration_minutes: int = Field(..., ge=0)
    status: AppointmentStatus


class Patient(FrozenSchema):
    """Patient identity; other attributes are irrelevant to the dashboard."""
    id: str


# Configuration
class WorkingHoursConfig(FrozenSchema):
    """Clinic operating hours and slot granularity."""
    start_hour: int = Field(..., ge=0, le=23)
    end_hour: int = Field(..., ge=1, le=24)
    slot_duration_minutes: int = Field(..., ge=1, le=60)
    work_days: frozenset[Weekday]

    @field_validator("slot_duration_minutes")
    @classmethod
    def slot_divides_hour(cls, value: int) -> int:
        if 60 % value != 0:
            raise ValueError("slot_duration_minutes must divide 60 evenly")
        return value

    @model_validator(mode="after")
    def hours_in_order(self) -> "WorkingHoursConfig":
        if self.end_hour <= self.start_hour:
            raise ValueError("end_hour must be after start_hour")
        return self

    @property
    def slots_per_hour(self) -> int:
        return 60 // self.slot_duration_minutes


class DashboardConfig(FrozenSchema):
    """Everything the metrics engine needs besides the records themselves."""
    working_hours: WorkingHoursConfig
    average_ticket: float = Field(..., ge=0)
    occupancy_target: int = Field(..., ge=0, le=100)
    locale: ComparisonLocale = ComparisonLocale.EN


# Metric snapshots
class MetricWithTrend(FrozenSchema):
    """A KPI value compared against its previous period."""
    value: int | float
    previous_value: int | float
    change_percent: float
    trend: TrendDirection
    comparison_text: str


class RevenueMetrics(MetricWithTrend):
    """Revenue KPI with the inputs it was estimated from."""
    average_ticket: float
    completed_count: int


class OccupancyMetrics(FrozenSchema):
    """Weekly schedule occupancy."""
    rate: int = Field(..., ge=0, le=100)
    target: int
    booked_slots: int
    total_slots: int
    status: OccupancyStatus


class AppointmentBreakdown(FrozenSchema):
    """Today's appointments by status."""
    confirmed: int = 0
    pending: int = 0
    completed: int = 0
    no_show: int = 0
    canceled: int = 0

    @property
    def total(self) -> int:
        return self.confirmed + self.pending + self.completed + self.no_show + self.canceled


class DashboardMetrics(FrozenSchema):
    """Snapshot of every dashboard KPI at one point in time."""
    today_appointments: MetricWithTrend
    active_patients: MetricWithTrend
    revenue: RevenueMetrics
    occupancy: OccupancyMetrics
    breakdown: AppointmentBreakdown
    loading: bool = False


# API schemas
class DashboardMetricsRequest(BaseSchema):
    """Request body carrying the record snapshot to compute metrics over."""
    appointments: list[Appointment] = Field(default_factory=list)
    patients: list[Patient] = Field(default_factory=list)
    now: datetime | None = Field(None, description="Reference instant; defaults to the current clinic time")
    loading: bool = False


class HealthCheck(BaseSchema):
    """Health check response schema."""
    status: str
    message: str
    uptime_seconds: float | None = None
    version: str | None = None
    environment: str | None = None
