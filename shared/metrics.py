"""
Shared metrics configuration for the LTPA token library.
"""

from prometheus_client import Counter, Histogram, CollectorRegistry
from typing import Dict, Any, Optional
import time
import threading
from contextlib import contextmanager


class MetricsCollector:
    """Centralized metrics collector for token operations."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up token metrics."""
        self._metrics["ltpa_tokens_generated_total"] = Counter(
            "ltpa_tokens_generated_total",
            "Total LTPA tokens generated",
            ["domain"],
            registry=self.registry
        )

        self._metrics["ltpa_token_validations_total"] = Counter(
            "ltpa_token_validations_total",
            "Total LTPA token validations",
            ["domain", "status"],
            registry=self.registry
        )

        self._metrics["ltpa_token_refreshes_total"] = Counter(
            "ltpa_token_refreshes_total",
            "Total LTPA token refreshes",
            ["domain", "status"],
            registry=self.registry
        )

        self._metrics["ltpa_validation_duration_seconds"] = Histogram(
            "ltpa_validation_duration_seconds",
            "LTPA token validation duration in seconds",
            registry=self.registry
        )

    def record_generation(self, domain: str):
        """Record a generated token."""
        self._metrics["ltpa_tokens_generated_total"].labels(domain=domain).inc()

    def record_validation(self, domain: str, status: str):
        """Record a validation outcome (``ok`` or a lowercase error code)."""
        self._metrics["ltpa_token_validations_total"].labels(domain=domain, status=status).inc()

    def record_refresh(self, domain: str, status: str):
        """Record a refresh outcome."""
        self._metrics["ltpa_token_refreshes_total"].labels(domain=domain, status=status).inc()

    @contextmanager
    def time_operation(self, operation_name: str, **labels):
        """Context manager to time an operation."""
        start_time = time.time()
        try:
            yield
        finally:
            duration = time.time() - start_time
            if operation_name in self._metrics:
                metric = self._metrics[operation_name]
                if labels:
                    metric = metric.labels(**labels)
                metric.observe(duration)


_collectors: Dict[str, MetricsCollector] = {}
_collectors_lock = threading.Lock()


def get_metrics_collector(service_name: str) -> MetricsCollector:
    """Get the process-wide metrics collector for a service."""
    with _collectors_lock:
        collector = _collectors.get(service_name)
        if collector is None:
            collector = MetricsCollector(service_name)
            _collectors[service_name] = collector
        return collector
