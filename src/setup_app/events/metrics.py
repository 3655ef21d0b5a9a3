"""Prometheus metrics for repository setup observability.

Metrics are exposed at the `/metrics` endpoint in Prometheus format.

Metrics Defined:
- setup_webhooks_received_total: Counter of deliveries by admission result
- setup_runs_total: Counter of finished setup runs by final stage
- setup_step_failures_total: Counter of failed steps by step name
- setup_run_duration_seconds: Histogram of run duration
"""

import logging
from typing import Optional

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

from src.setup_app.state.models import SetupRun


logger = logging.getLogger(__name__)


# Covers 100ms up to 2 minutes; a run is a handful of API calls
DEFAULT_DURATION_BUCKETS = (0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0)

# Admission results for setup_webhooks_received_total
ADMISSION_RESULTS = ("accepted", "ignored", "rejected", "invalid")


class SetupMetrics:
    """Container for all setup app Prometheus metrics.

    Each instance owns its registry unless one is passed in, so the app and
    tests can create instances freely without duplicate registration.

    Attributes:
        registry: The Prometheus registry for these metrics.
        webhooks_received_total: Counter labelled by result.
        runs_total: Counter labelled by final stage.
        step_failures_total: Counter labelled by step name.
        run_duration_seconds: Histogram of run duration.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry if registry is not None else CollectorRegistry()

        self.webhooks_received_total = Counter(
            "setup_webhooks_received_total",
            "Total webhook deliveries by admission result",
            labelnames=["result"],
            registry=self.registry,
        )

        self.runs_total = Counter(
            "setup_runs_total",
            "Total setup runs by final stage",
            labelnames=["status"],
            registry=self.registry,
        )

        self.step_failures_total = Counter(
            "setup_step_failures_total",
            "Total failed setup steps by step name",
            labelnames=["step"],
            registry=self.registry,
        )

        self.run_duration_seconds = Histogram(
            "setup_run_duration_seconds",
            "Time spent executing setup runs in seconds",
            buckets=DEFAULT_DURATION_BUCKETS,
            registry=self.registry,
        )

        for result in ADMISSION_RESULTS:
            self.webhooks_received_total.labels(result=result)

    def record_admission(self, result: str) -> None:
        """Record how a webhook delivery was admitted.

        Args:
            result: One of accepted, ignored, rejected, invalid.
        """
        self.webhooks_received_total.labels(result=result).inc()

    def record_run(self, run: SetupRun) -> None:
        """Record a finished run: final stage, failed steps and duration."""
        self.runs_total.labels(status=run.stage.value).inc()
        for step_name in run.failed_steps:
            self.step_failures_total.labels(step=step_name).inc()
        duration = run.duration_seconds
        if duration is not None:
            self.run_duration_seconds.observe(duration)

    def generate_output(self) -> bytes:
        """Generate Prometheus text format output for this registry."""
        return generate_latest(self.registry)
