"""Unit tests for the dashboard metrics engine."""

from datetime import datetime, timedelta, UTC

import pytest
from pydantic import ValidationError

from clinic_dashboard.schemas import (
    AppointmentBreakdown,
    AppointmentStatus,
    ComparisonLocale,
    DashboardConfig,
    OccupancyStatus,
    TrendDirection,
    WorkingHoursConfig,
)
from clinic_dashboard.services.aggregator import AggregatedCounters
from clinic_dashboard.services.dashboard_metrics import (
    assemble_dashboard_metrics,
    build_occupancy,
    compute_dashboard_metrics,
    occupancy_status,
)
from tests.utils.assertions import TestAssertions
from tests.utils.test_data import TestDataFactory, TestScenarios

WEDNESDAY_MORNING = datetime(2025, 1, 15, 9, 0, tzinfo=UTC)


@pytest.mark.unit
@pytest.mark.dashboard
class TestComputeDashboardMetrics:
    """Test cases for compute_dashboard_metrics."""

    def test_today_versus_yesterday(self, reference_now, dashboard_config):
        appointments = TestScenarios.today_versus_yesterday(reference_now)

        metrics = compute_dashboard_metrics(appointments, [], dashboard_config, reference_now)

        assert metrics.today_appointments.value == 2
        assert metrics.today_appointments.previous_value == 1
        assert metrics.today_appointments.change_percent == 100
        assert metrics.today_appointments.trend is TrendDirection.UP
        assert metrics.today_appointments.comparison_text == "+100% vs yesterday"
        assert metrics.breakdown == AppointmentBreakdown(confirmed=1, pending=1, completed=0, no_show=0, canceled=0)

    def test_counts_stay_integers(self, reference_now, dashboard_config):
        metrics = compute_dashboard_metrics(
            TestScenarios.today_versus_yesterday(reference_now),
            TestDataFactory.create_patients(2),
            dashboard_config,
            reference_now,
        )

        for metric in (metrics.today_appointments, metrics.active_patients):
            assert type(metric.value) is int
            assert type(metric.previous_value) is int
        assert '"value":2,' in metrics.model_dump_json()

    def test_revenue_from_completed_appointments(self, reference_now, dashboard_config):
        appointments = TestScenarios.finished_by_month(reference_now, this_month=8, last_month=10)

        metrics = compute_dashboard_metrics(appointments, [], dashboard_config, reference_now)

        assert metrics.revenue.value == 2800
        assert metrics.revenue.previous_value == 3500
        assert metrics.revenue.change_percent == pytest.approx(-20)
        assert metrics.revenue.trend is TrendDirection.DOWN
        assert metrics.revenue.comparison_text == "-20% vs last month"
        assert metrics.revenue.average_ticket == 350
        assert metrics.revenue.completed_count == 8

    def test_revenue_ignores_unfinished_appointments(self, reference_now, dashboard_config):
        appointments = [
            TestDataFactory.create_appointment(datetime(2025, 1, 10, 9, 0, tzinfo=UTC), AppointmentStatus.FINISHED),
            TestDataFactory.create_appointment(datetime(2025, 1, 10, 9, 0, tzinfo=UTC), AppointmentStatus.FINISHED),
            TestDataFactory.create_appointment(datetime(2025, 1, 10, 9, 0, tzinfo=UTC), AppointmentStatus.CONFIRMED),
        ]

        metrics = compute_dashboard_metrics(appointments, [], dashboard_config, reference_now)

        assert metrics.revenue.value == 700
        assert metrics.revenue.completed_count == 2

    def test_active_patients_against_last_month(self, reference_now, dashboard_config):
        december = datetime(2024, 12, 5, 9, 0, tzinfo=UTC)
        appointments = [
            TestDataFactory.create_appointment(december, patient_id="patient-0"),
            TestDataFactory.create_appointment(december, patient_id="patient-0"),
            TestDataFactory.create_appointment(december, patient_id="patient-1"),
        ]

        metrics = compute_dashboard_metrics(
            appointments, TestDataFactory.create_patients(3), dashboard_config, reference_now
        )

        assert metrics.active_patients.value == 3
        assert metrics.active_patients.previous_value == 2
        assert metrics.active_patients.change_percent == 50
        assert metrics.active_patients.comparison_text == "+50% vs last month"

    def test_saturday_booking_adds_no_capacity(self, reference_now, dashboard_config):
        saturday = datetime(2025, 1, 18, 10, 0, tzinfo=UTC)
        appointments = [TestDataFactory.create_appointment(saturday, duration_minutes=60)]

        metrics = compute_dashboard_metrics(appointments, [], dashboard_config, reference_now)

        assert metrics.occupancy.total_slots == 100
        assert metrics.occupancy.booked_slots == 0
        assert metrics.occupancy.rate == 0
        assert metrics.occupancy.status is OccupancyStatus.NEEDS_ATTENTION

    def test_overbooked_day_is_capped(self, reference_now, dashboard_config):
        appointments = TestDataFactory.create_appointments(30, WEDNESDAY_MORNING, duration_minutes=60)

        metrics = compute_dashboard_metrics(appointments, [], dashboard_config, reference_now)

        assert metrics.occupancy.booked_slots == 20
        assert metrics.occupancy.rate == 20

    def test_fully_booked_week(self, reference_now, dashboard_config):
        monday = datetime(2025, 1, 13, 8, 0, tzinfo=UTC)
        appointments = [
            appointment
            for offset in range(7)
            for appointment in TestDataFactory.create_appointments(
                25, monday + timedelta(days=offset), duration_minutes=30
            )
        ]

        metrics = compute_dashboard_metrics(appointments, [], dashboard_config, reference_now)

        assert metrics.occupancy.rate == 100
        assert metrics.occupancy.booked_slots == metrics.occupancy.total_slots == 100
        assert metrics.occupancy.status is OccupancyStatus.EXCELLENT
        assert metrics.occupancy.target == 85

    def test_empty_inputs(self, reference_now, dashboard_config):
        metrics = compute_dashboard_metrics([], [], dashboard_config, reference_now)

        for metric in (metrics.today_appointments, metrics.active_patients, metrics.revenue):
            assert metric.value == 0
            assert metric.previous_value == 0
            assert metric.change_percent == 0
            assert metric.trend is TrendDirection.STABLE
        assert metrics.today_appointments.comparison_text == "equal to yesterday"
        assert metrics.occupancy.rate == 0
        assert metrics.breakdown == AppointmentBreakdown()
        assert metrics.loading is False

    def test_closed_clinic_has_zero_rate(self, reference_now):
        config = DashboardConfig(
            working_hours=WorkingHoursConfig(start_hour=8, end_hour=18, slot_duration_minutes=30, work_days=[]),
            average_ticket=100,
            occupancy_target=85,
        )
        appointments = TestDataFactory.create_appointments(3, WEDNESDAY_MORNING)

        metrics = compute_dashboard_metrics(appointments, [], config, reference_now)

        assert metrics.occupancy.total_slots == 0
        assert metrics.occupancy.rate == 0

    def test_loading_flag_passes_through(self, reference_now, dashboard_config):
        metrics = compute_dashboard_metrics([], [], dashboard_config, reference_now, loading=True)

        assert metrics.loading is True

    def test_portuguese_comparison_texts(self, reference_now, working_hours):
        config = DashboardConfig(
            working_hours=working_hours,
            average_ticket=350,
            occupancy_target=85,
            locale=ComparisonLocale.PT_BR,
        )

        metrics = compute_dashboard_metrics(
            TestScenarios.today_versus_yesterday(reference_now), [], config, reference_now
        )

        assert metrics.today_appointments.comparison_text == "+100% vs ontem"
        assert metrics.revenue.comparison_text == "Igual mês ant."

    def test_identical_inputs_give_equal_snapshots(self, reference_now, dashboard_config):
        appointments = TestDataFactory.create_random_appointments(7, reference_now)
        patients = TestDataFactory.create_patients(40)

        first = compute_dashboard_metrics(appointments, patients, dashboard_config, reference_now)
        second = compute_dashboard_metrics(appointments, patients, dashboard_config, reference_now)

        assert first == second
        assert first.model_dump() == second.model_dump()

    def test_inputs_are_not_modified(self, reference_now, dashboard_config):
        appointments = TestDataFactory.create_random_appointments(3, reference_now, count=50)
        patients = TestDataFactory.create_patients(5)
        appointments_before = [a.model_dump() for a in appointments]
        patients_before = list(patients)

        compute_dashboard_metrics(appointments, patients, dashboard_config, reference_now)

        assert [a.model_dump() for a in appointments] == appointments_before
        assert patients == patients_before

    def test_naive_dates_with_naive_now(self, dashboard_config):
        now = datetime(2025, 1, 15, 10, 0)
        appointments = [TestDataFactory.create_appointment(datetime(2025, 1, 15, 8, 0))]

        metrics = compute_dashboard_metrics(appointments, [], dashboard_config, now)

        assert metrics.today_appointments.value == 1

    def test_naive_date_with_aware_now_is_rejected(self, reference_now, dashboard_config):
        appointments = [TestDataFactory.create_appointment(datetime(2025, 1, 15, 8, 0))]

        with pytest.raises(TypeError):
            compute_dashboard_metrics(appointments, [], dashboard_config, reference_now)

    def test_snapshot_is_immutable(self, reference_now, dashboard_config):
        metrics = compute_dashboard_metrics([], [], dashboard_config, reference_now)

        with pytest.raises(ValidationError):
            metrics.loading = True

    @pytest.mark.parametrize("seed", range(10))
    def test_snapshot_invariants_hold_for_random_data(self, reference_now, dashboard_config, seed):
        appointments = TestDataFactory.create_random_appointments(seed, reference_now, count=400)

        metrics = compute_dashboard_metrics(appointments, [], dashboard_config, reference_now)

        TestAssertions.assert_snapshot_invariants(metrics)

    def test_breakdown_equals_today_when_all_statuses_listed(self, reference_now, dashboard_config):
        statuses = [
            AppointmentStatus.CONFIRMED,
            AppointmentStatus.CONFIRMED,
            AppointmentStatus.PENDING,
            AppointmentStatus.FINISHED,
            AppointmentStatus.NO_SHOW,
            AppointmentStatus.CANCELED,
        ]
        appointments = [TestDataFactory.create_appointment(WEDNESDAY_MORNING, status) for status in statuses]

        metrics = compute_dashboard_metrics(appointments, [], dashboard_config, reference_now)

        assert metrics.breakdown == AppointmentBreakdown(confirmed=2, pending=1, completed=1, no_show=1, canceled=1)
        assert metrics.breakdown.total == metrics.today_appointments.value


@pytest.mark.unit
@pytest.mark.dashboard
class TestOccupancy:
    """Test cases for occupancy assembly."""

    @pytest.mark.parametrize("rate,expected", [
        (100, OccupancyStatus.EXCELLENT),
        (80, OccupancyStatus.EXCELLENT),
        (79, OccupancyStatus.GOOD),
        (60, OccupancyStatus.GOOD),
        (59, OccupancyStatus.NEEDS_ATTENTION),
        (0, OccupancyStatus.NEEDS_ATTENTION),
    ])
    def test_status_thresholds(self, rate, expected):
        assert occupancy_status(rate) is expected

    def test_rate_rounds_half_up(self):
        occupancy = build_occupancy([1, 0, 0, 0, 0, 0, 0], [200, 0, 0, 0, 0, 0, 0], target=85)

        assert occupancy.rate == 1

    def test_status_follows_rounded_rate(self):
        # 159 / 200 = 79.5%, reported as 80
        occupancy = build_occupancy([159, 0, 0, 0, 0, 0, 0], [200, 0, 0, 0, 0, 0, 0], target=85)

        assert occupancy.rate == 80
        assert occupancy.status is OccupancyStatus.EXCELLENT

    def test_rate_rounds_down_below_half(self):
        occupancy = build_occupancy([2, 0, 0, 0, 0, 0, 0], [3, 0, 0, 0, 0, 0, 0], target=85)

        assert occupancy.rate == 67
        assert occupancy.status is OccupancyStatus.GOOD


@pytest.mark.unit
@pytest.mark.dashboard
class TestAssembleDashboardMetrics:
    """Test cases for assemble_dashboard_metrics."""

    def test_assembles_from_counters(self, dashboard_config):
        counters = AggregatedCounters(
            today_count=4,
            yesterday_count=4,
            completed_this_month=8,
            completed_last_month=10,
            patients_last_month={"a", "b"},
            booked_week_slots=[10, 10, 10, 10, 10, 3, 0],
            today_by_status={AppointmentStatus.CONFIRMED: 3},
        )

        metrics = assemble_dashboard_metrics(counters, 2, [20, 20, 20, 20, 20, 0, 0], dashboard_config)

        assert metrics.today_appointments.trend is TrendDirection.STABLE
        assert metrics.today_appointments.comparison_text == "equal to yesterday"
        assert metrics.active_patients.change_percent == 0
        assert metrics.revenue.value == 2800
        assert metrics.occupancy.booked_slots == 50
        assert metrics.occupancy.rate == 50
        assert metrics.breakdown == AppointmentBreakdown(confirmed=3)
