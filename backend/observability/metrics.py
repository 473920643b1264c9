"""
Metrics definitions for the class scheduler.

Defines all metrics using the OpenTelemetry Meter API. Without a configured
MeterProvider the instruments are no-ops.
"""

import logging
from typing import Callable, Dict, Optional

from opentelemetry import metrics

logger = logging.getLogger(__name__)

# Meter name
_METER_NAME = "class-scheduler"


def _get_meter() -> metrics.Meter:
    """Get the metrics meter instance."""
    return metrics.get_meter(_METER_NAME)


class SchedulerMetrics:
    """
    Centralized metrics for the class scheduler.

    All metrics are lazily initialized on first access.
    """

    _catch_up_runs_total: Optional[metrics.Counter] = None
    _class_instances_created_total: Optional[metrics.Counter] = None
    _duplicate_occurrences_total: Optional[metrics.Counter] = None

    @classmethod
    def catch_up_runs_total(cls) -> metrics.Counter:
        """Counter for per-template catch-up runs by outcome status."""
        if cls._catch_up_runs_total is None:
            cls._catch_up_runs_total = _get_meter().create_counter(
                name="catch_up_runs_total",
                description="Total number of per-template catch-up runs",
                unit="1",
            )
        return cls._catch_up_runs_total

    @classmethod
    def class_instances_created_total(cls) -> metrics.Counter:
        """Counter for created class instances by creation source."""
        if cls._class_instances_created_total is None:
            cls._class_instances_created_total = _get_meter().create_counter(
                name="class_instances_created_total",
                description="Total class instances written by the scheduler",
                unit="1",
            )
        return cls._class_instances_created_total

    @classmethod
    def duplicate_occurrences_total(cls) -> metrics.Counter:
        """Counter for writes skipped or rejected because the date was taken."""
        if cls._duplicate_occurrences_total is None:
            cls._duplicate_occurrences_total = _get_meter().create_counter(
                name="duplicate_occurrences_total",
                description="Total (template, date) pairs found already scheduled",
                unit="1",
            )
        return cls._duplicate_occurrences_total


def record(
    instrument: Callable[[], metrics.Counter],
    amount: int = 1,
    attributes: Optional[Dict[str, str]] = None,
) -> None:
    """Add to a counter without letting a metrics failure break the caller."""
    try:
        instrument().add(amount, attributes or {})
    except Exception:
        logger.debug("Failed to record scheduler metric", exc_info=True)
