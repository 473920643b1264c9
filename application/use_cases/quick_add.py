"""Use case: Quick-add a single class from a template.

Creates one manual-override instance for any date, optionally with a
different start time or duration. The template and its auto-schedule
watermark are never touched.
"""

import logging
import math
from datetime import date, time
from typing import Optional

from application.errors import (
    DuplicateOccurrence,
    InvalidOverride,
    InvalidTemplate,
    SchedulingError,
    StoreReadFailed,
    StoreWriteFailed,
)
from application.models import (
    ClassInstance,
    ClassStatus,
    ClassTemplate,
    CreationSource,
    end_time_for,
)
from application.ports.class_instance_repository import ClassInstanceRepository
from backend.observability import SchedulerMetrics, record
from backend.services.template_locks import TemplateLockRegistry

logger = logging.getLogger(__name__)

MAX_DURATION_HOURS = 24


def build_override_instance(
    template: ClassTemplate,
    day: date,
    start_time_override: Optional[time] = None,
    duration_override: Optional[float] = None,
    title_override: Optional[str] = None,
) -> ClassInstance:
    """Create the unsaved manual-override instance for ``day``.

    The end time is always recomputed from the effective start time and
    duration. ``day`` does not have to fall on the template's weekday.

    Raises:
        InvalidOverride: If the duration is not in (0, 24] hours or the class
            would run past midnight.
    """
    start = template.start_time if start_time_override is None else start_time_override
    duration = template.duration_hours if duration_override is None else duration_override
    if not (math.isfinite(duration) and 0 < duration <= MAX_DURATION_HOURS):
        raise InvalidOverride(
            f"Duration must be between 0 and {MAX_DURATION_HOURS}h, got {duration}h"
        )
    end = end_time_for(start, duration)
    if end is None:
        raise InvalidOverride(
            f"A {duration}h class starting at {start.isoformat()} does not end on the same day"
        )
    return ClassInstance(
        studio_id=template.studio_id,
        title=title_override or template.class_name,
        date=day,
        start_time=start,
        end_time=end,
        duration_hours=duration,
        status=ClassStatus.scheduled,
        creation_source=CreationSource.manual_override,
        source_template_id=template.id,
    )


class QuickAddUseCase:
    """Resolves a quick-add request into exactly one stored instance."""

    def __init__(
        self,
        instance_repository: ClassInstanceRepository,
        locks: Optional[TemplateLockRegistry] = None,
    ) -> None:
        self._instances = instance_repository
        self._locks = locks or TemplateLockRegistry()

    def resolve(
        self,
        template: ClassTemplate,
        day: date,
        start_time_override: Optional[time] = None,
        duration_override: Optional[float] = None,
        title_override: Optional[str] = None,
    ) -> ClassInstance:
        """Create a manual-override instance of ``template`` on ``day``.

        Args:
            template: Stored template to copy studio, title and times from.
            day: Any date; weekday alignment is not required.
            start_time_override: Replaces the template's start time.
            duration_override: Replaces the template's duration in hours.
            title_override: Replaces the class name used as title.

        Returns:
            The stored instance including its 'id'.

        Raises:
            DuplicateOccurrence: If the template already has an instance on
                ``day``.
            InvalidTemplate: If the template is unsaved or inconsistent.
            InvalidOverride: If the overrides do not fit in one day.
            StoreReadFailed / StoreWriteFailed: On instance store errors.
        """
        if template.id is None:
            raise InvalidTemplate("Cannot quick-add from an unsaved template")
        template.validate_schedule()
        instance = build_override_instance(
            template,
            day,
            start_time_override=start_time_override,
            duration_override=duration_override,
            title_override=title_override,
        )

        with self._locks.hold(template.id):
            try:
                taken = self._instances.exists(template.id, day)
            except Exception as e:
                raise StoreReadFailed(
                    f"Could not check template {template.id} on {day.isoformat()}: {e}"
                ) from e
            if taken:
                record(
                    SchedulerMetrics.duplicate_occurrences_total,
                    attributes={"path": "quick_add"},
                )
                raise DuplicateOccurrence(template.id, day)

            try:
                created = self._instances.create(instance)
            except DuplicateOccurrence:
                record(
                    SchedulerMetrics.duplicate_occurrences_total,
                    attributes={"path": "quick_add"},
                )
                raise
            except SchedulingError:
                raise
            except Exception as e:
                raise StoreWriteFailed(
                    f"Could not create class for template {template.id} on {day.isoformat()}: {e}"
                ) from e

        record(
            SchedulerMetrics.class_instances_created_total,
            attributes={"creation_source": CreationSource.manual_override.value},
        )
        logger.info(
            "Quick-added %s on %s %s-%s from template %s",
            created.title,
            day,
            created.start_time.strftime("%H:%M"),
            created.end_time.strftime("%H:%M"),
            template.id,
        )
        return created
