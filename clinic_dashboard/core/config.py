"""Application configuration using Pydantic Settings."""

from zoneinfo import ZoneInfo

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from clinic_dashboard.schemas import ComparisonLocale, DashboardConfig, Weekday, WorkingHoursConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, populate_by_name=True)

    # Application
    app_name: str = Field(default="Clinic Dashboard Metrics", alias="APP_NAME")
    env: str = Field(default="dev", alias="ENV")
    debug: bool = Field(default=False, alias="DEBUG")

    # Monitoring
    prometheus_enabled: bool = Field(default=False, alias="PROMETHEUS_ENABLED")

    # Clinic
    clinic_timezone: str = Field(default="UTC", alias="CLINIC_TIMEZONE")
    working_hours_start: int = Field(default=8, alias="WORKING_HOURS_START")
    working_hours_end: int = Field(default=18, alias="WORKING_HOURS_END")
    slot_duration_minutes: int = Field(default=30, alias="SLOT_DURATION_MINUTES")
    # Comma-separated ISO weekdays (1 = Monday ... 7 = Sunday)
    work_days: str = Field(default="1,2,3,4,5", alias="WORK_DAYS")

    # Dashboard
    average_ticket: float = Field(default=350.0, alias="AVERAGE_TICKET")
    occupancy_target: int = Field(default=85, alias="OCCUPANCY_TARGET")
    comparison_locale: ComparisonLocale = Field(default=ComparisonLocale.EN, alias="COMPARISON_LOCALE")

    @field_validator("clinic_timezone")
    @classmethod
    def timezone_exists(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (KeyError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value!r}") from e
        return value

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.env.lower() in ("dev", "development")

    @property
    def clinic_tz(self) -> ZoneInfo:
        return ZoneInfo(self.clinic_timezone)

    def parsed_work_days(self) -> frozenset[Weekday]:
        """Parse ``work_days`` into weekdays, ignoring blanks and duplicates."""
        days = set()
        for part in self.work_days.split(","):
            part = part.strip()
            if not part:
                continue
            try:
                days.add(Weekday(int(part)))
            except ValueError as e:
                raise ValueError(f"Invalid WORK_DAYS value: {part!r}. Expected ISO weekday 1-7.") from e
        return frozenset(days)

    def working_hours_config(self) -> WorkingHoursConfig:
        """Build the immutable working hours configuration."""
        return WorkingHoursConfig(
            start_hour=self.working_hours_start,
            end_hour=self.working_hours_end,
            slot_duration_minutes=self.slot_duration_minutes,
            work_days=self.parsed_work_days(),
        )

    def dashboard_config(self) -> DashboardConfig:
        """Build the configuration handed to the metrics engine."""
        return DashboardConfig(
            working_hours=self.working_hours_config(),
            average_ticket=self.average_ticket,
            occupancy_target=self.occupancy_target,
            locale=self.comparison_locale,
        )


# Global settings instance
settings = Settings()
