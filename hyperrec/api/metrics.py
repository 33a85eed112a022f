"""Metrics service for tracking API performance.

Singleton service to track recommendation calls, fallbacks, tracked
interactions and model refreshes.
"""

import threading
from typing import Dict


class MetricsService:
    """Singleton service for tracking API metrics.

    Thread-safe counter and latency tracking for recommendation calls.
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        """Create singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(MetricsService, cls).__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize metrics counters."""
        if self._initialized:
            return

        self._lock = threading.Lock()
        self._reset_counters()
        self._initialized = True

    def _reset_counters(self) -> None:
        self._recommendation_count = 0
        self._fallback_count = 0
        self._total_latency_ms = 0.0
        self._min_latency_ms = float('inf')
        self._max_latency_ms = 0.0
        self._tracked_events = 0
        self._failed_events = 0
        self._refreshes = 0
        self._failed_refreshes = 0

    def record_recommendation(self, latency_ms: float, fallback: bool = False) -> None:
        """Record a recommendation call with its latency.

        Args:
            latency_ms: Latency in milliseconds
            fallback: Whether the fallback list was served
        """
        with self._lock:
            self._recommendation_count += 1
            self._total_latency_ms += latency_ms
            if fallback:
                self._fallback_count += 1

            if latency_ms < self._min_latency_ms:
                self._min_latency_ms = latency_ms

            if latency_ms > self._max_latency_ms:
                self._max_latency_ms = latency_ms

    def record_tracked_event(self, success: bool = True) -> None:
        with self._lock:
            self._tracked_events += 1
            if not success:
                self._failed_events += 1

    def record_refresh(self, success: bool = True) -> None:
        with self._lock:
            self._refreshes += 1
            if not success:
                self._failed_refreshes += 1

    def get_metrics(self) -> Dict:
        """Get current metrics.

        Returns:
            Dictionary with metrics including:
            - recommendation_count: Total number of recommendation calls
            - fallback_count: Calls answered with the fallback list
            - average_latency_ms: Average latency in milliseconds
            - min_latency_ms: Minimum latency observed
            - max_latency_ms: Maximum latency observed
            - tracked_events / failed_events: Interaction tracking counts
            - refreshes / failed_refreshes: Explicit refresh requests
        """
        with self._lock:
            avg_latency = (
                self._total_latency_ms / self._recommendation_count
                if self._recommendation_count > 0
                else 0.0
            )

            return {
                "recommendation_count": self._recommendation_count,
                "fallback_count": self._fallback_count,
                "average_latency_ms": round(avg_latency, 2),
                "min_latency_ms": round(self._min_latency_ms, 2) if self._min_latency_ms != float('inf') else 0.0,
                "max_latency_ms": round(self._max_latency_ms, 2),
                "tracked_events": self._tracked_events,
                "failed_events": self._failed_events,
                "refreshes": self._refreshes,
                "failed_refreshes": self._failed_refreshes,
            }

    def reset(self) -> None:
        """Reset all metrics (useful for testing)."""
        with self._lock:
            self._reset_counters()


# Global singleton instance
metrics_service = MetricsService()
