"""Unit tests for Prometheus label helpers."""

import pytest

from clinic_dashboard.observability.metrics import endpoint_label


@pytest.mark.unit
class TestEndpointLabel:
    """Test cases for endpoint_label."""

    @pytest.mark.parametrize("path,expected", [
        ("/api/v1/dashboard/metrics", "/api/v1/dashboard/metrics"),
        ("/api/v1/clinics/42/dashboard", "/api/v1/clinics/{id}/dashboard"),
        ("/api/v1/clinics/3f2b6c1e-9d4a-4b8e-a1c2-0e5f7d9b3a61", "/api/v1/clinics/{id}"),
        ("/health", "/health"),
    ])
    def test_normalizes_identifiers(self, path, expected):
        assert endpoint_label(path) == expected
