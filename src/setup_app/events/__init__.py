"""Observability for the repository setup app.

Metrics:
- SetupMetrics: Container for all Prometheus metrics, exposed at /metrics
"""

from src.setup_app.events.metrics import ADMISSION_RESULTS, SetupMetrics

__all__ = ["ADMISSION_RESULTS", "SetupMetrics"]
