"""Errors raised by the class scheduling use cases."""

from datetime import date
from typing import Optional


class SchedulingError(Exception):
    """Base class for all scheduling errors."""

    kind = "scheduling_error"


class StoreReadFailed(SchedulingError):
    """A template or instance store could not be read."""

    kind = "store_read_failed"


class StoreWriteFailed(SchedulingError):
    """A template or instance store rejected a write."""

    kind = "store_write_failed"


class TemplateNotFound(SchedulingError):
    """The requested template does not exist."""

    kind = "template_not_found"

    def __init__(self, template_id: str):
        super().__init__(f"Class template {template_id} not found")
        self.template_id = template_id


class InvalidTemplate(SchedulingError):
    """A template violates its time or watermark invariants."""

    kind = "invalid_template"


class InvalidOverride(SchedulingError):
    """A quick-add override cannot produce a valid single-day instance."""

    kind = "invalid_override"


class DuplicateOccurrence(SchedulingError):
    """The template already has an instance on this date."""

    kind = "duplicate_occurrence"

    def __init__(self, template_id: Optional[str], day: date):
        super().__init__(
            f"Class template {template_id} is already scheduled for {day.isoformat()}"
        )
        self.template_id = template_id
        self.date = day
