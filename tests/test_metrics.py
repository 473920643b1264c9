"""Unit tests for scheduler metrics."""

from unittest.mock import MagicMock

import pytest

from backend.observability import SchedulerMetrics, record


@pytest.mark.unit
def test_counters_are_created_once():
    assert SchedulerMetrics.catch_up_runs_total() is SchedulerMetrics.catch_up_runs_total()
    assert (
        SchedulerMetrics.class_instances_created_total()
        is SchedulerMetrics.class_instances_created_total()
    )
    assert (
        SchedulerMetrics.duplicate_occurrences_total()
        is SchedulerMetrics.duplicate_occurrences_total()
    )


@pytest.mark.unit
def test_record_adds_to_counter():
    counter = MagicMock()

    record(lambda: counter, attributes={"status": "success"})

    counter.add.assert_called_once_with(1, {"status": "success"})


@pytest.mark.unit
def test_record_defaults_to_empty_attributes():
    counter = MagicMock()

    record(lambda: counter, amount=3)

    counter.add.assert_called_once_with(3, {})


@pytest.mark.unit
def test_record_swallows_instrument_errors():
    counter = MagicMock()
    counter.add.side_effect = RuntimeError("exporter down")

    record(lambda: counter)
