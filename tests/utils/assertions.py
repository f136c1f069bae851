"""Custom assertion helpers for testing."""

from typing import Any, Dict

from fastapi import status
from httpx import Response

from clinic_dashboard.schemas import DashboardMetrics


class TestAssertions:
    """Custom assertion helpers for API and engine testing."""

    @staticmethod
    def assert_success_response(response: Response, expected_status: int = status.HTTP_200_OK):
        """Assert that the response is successful."""
        assert response.status_code == expected_status, f"Expected {expected_status}, got {response.status_code}. Response: {response.text}"

    @staticmethod
    def assert_error_response(response: Response, expected_status: int, expected_code: str = None):
        """Assert that the response is an error with expected status and error code."""
        assert response.status_code == expected_status, f"Expected {expected_status}, got {response.status_code}. Response: {response.text}"

        if expected_code:
            response_data = response.json()
            assert response_data["error_code"] == expected_code, f"Expected error code '{expected_code}' in response: {response_data}"

    @staticmethod
    def assert_validation_error(response: Response):
        """Assert that the response indicates validation error."""
        TestAssertions.assert_error_response(response, status.HTTP_422_UNPROCESSABLE_ENTITY, "VALIDATION_ERROR")

    @staticmethod
    def assert_metric_data(metric: Dict[str, Any], value: float, previous_value: float, trend: str):
        """Assert the core fields of a serialized KPI."""
        assert metric["value"] == value
        assert metric["previous_value"] == previous_value
        assert metric["trend"] == trend

    @staticmethod
    def assert_snapshot_invariants(metrics: DashboardMetrics):
        """Assert properties every dashboard snapshot must satisfy."""
        assert metrics.breakdown.total <= metrics.today_appointments.value
        assert 0 <= metrics.occupancy.rate <= 100
        assert metrics.occupancy.booked_slots <= metrics.occupancy.total_slots
        assert metrics.revenue.value == metrics.revenue.completed_count * metrics.revenue.average_ticket
