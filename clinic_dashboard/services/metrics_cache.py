"""Memoized access to the dashboard metrics engine."""

import threading
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict

from clinic_dashboard.core.logging import get_logger
from clinic_dashboard.observability.metrics import DASHBOARD_CACHE_EVENTS
from clinic_dashboard.schemas import Appointment, DashboardConfig, DashboardMetrics, Patient
from clinic_dashboard.services.dashboard_metrics import compute_dashboard_metrics

logger = get_logger(__name__)


@dataclass(frozen=True)
class _CacheEntry:
    appointments: Sequence[Appointment]
    patients: Sequence[Patient]
    config: DashboardConfig
    loading: bool
    now: datetime
    metrics: DashboardMetrics

    def matches(
        self,
        appointments: Sequence[Appointment],
        patients: Sequence[Patient],
        config: DashboardConfig,
        loading: bool,
        now: datetime,
    ) -> bool:
        # Collections are compared by identity: a new list means new data.
        return (
            self.appointments is appointments
            and self.patients is patients
            and self.config == config
            and self.loading == loading
            and self.now == now
        )


class DashboardMetricsCache:
    """
    Single-entry memo around ``compute_dashboard_metrics``.

    The snapshot is reused while the caller passes the very same appointment
    and patient collections, an equal configuration and the same reference
    instant. Month-to-date revenue ends at the instant itself, so a later
    ``now`` on the same day is a different key. Entries hold strong references
    to the collections so their identity cannot be recycled while cached.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._entry: _CacheEntry | None = None
        self.cache_stats = {
            "hits": 0,
            "misses": 0,
            "invalidations": 0
        }

    def get_or_compute(
        self,
        appointments: Sequence[Appointment],
        patients: Sequence[Patient],
        config: DashboardConfig,
        now: datetime,
        loading: bool = False,
    ) -> DashboardMetrics:
        """Return the cached snapshot for these inputs or compute a new one."""
        with self._lock:
            entry = self._entry
            if entry is not None and entry.matches(appointments, patients, config, loading, now):
                self.cache_stats["hits"] += 1
                DASHBOARD_CACHE_EVENTS.labels(result="hit").inc()
                logger.debug("Dashboard metrics cache hit", reference=now.isoformat())
                return entry.metrics

            self.cache_stats["misses"] += 1
            DASHBOARD_CACHE_EVENTS.labels(result="miss").inc()
            logger.debug("Dashboard metrics cache miss", reference=now.isoformat())

            metrics = compute_dashboard_metrics(appointments, patients, config, now, loading)
            self._entry = _CacheEntry(
                appointments=appointments,
                patients=patients,
                config=config,
                loading=loading,
                now=now,
                metrics=metrics,
            )
            return metrics

    def invalidate(self) -> None:
        """Drop the cached snapshot."""
        with self._lock:
            if self._entry is not None:
                self.cache_stats["invalidations"] += 1
            self._entry = None

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        total_requests = self.cache_stats["hits"] + self.cache_stats["misses"]
        hit_rate = (self.cache_stats["hits"] / total_requests * 100) if total_requests > 0 else 0

        return {
            **self.cache_stats,
            "hit_rate": hit_rate,
            "total_requests": total_requests
        }
