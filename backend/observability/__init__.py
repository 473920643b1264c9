"""
OpenTelemetry metrics package for the class scheduler.

Usage:
    from backend.observability import SchedulerMetrics, record

    record(SchedulerMetrics.catch_up_runs_total, attributes={"status": "success"})
"""

from backend.observability.metrics import SchedulerMetrics, record

__all__ = [
    "SchedulerMetrics",
    "record",
]
