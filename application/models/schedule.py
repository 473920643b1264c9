"""Domain models for recurring class templates and dated class instances.

Rows in the ``class_templates`` and ``class_instances`` tables map 1:1 onto
these models; ``model_dump(mode="json")`` produces the insert/update payload.
"""

import datetime as dt
import math
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from application.errors import InvalidTemplate

DEFAULT_DURATION_HOURS = 1.25


# ---------------------------------------------------------------------------
# Enums - values mirror the DB CHECK constraints
# ---------------------------------------------------------------------------


class Weekday(str, Enum):
    monday = "monday"
    tuesday = "tuesday"
    wednesday = "wednesday"
    thursday = "thursday"
    friday = "friday"
    saturday = "saturday"
    sunday = "sunday"

    @property
    def number(self) -> int:
        """ISO position of the day, Monday = 0 (matches ``date.weekday()``)."""
        return _WEEKDAY_ORDER.index(self)

    @classmethod
    def of(cls, day: dt.date) -> "Weekday":
        return _WEEKDAY_ORDER[day.weekday()]


_WEEKDAY_ORDER = list(Weekday)


class ClassStatus(str, Enum):
    scheduled = "scheduled"
    completed = "completed"
    cancelled = "cancelled"


class CreationSource(str, Enum):
    from_template = "from_template"
    manual_override = "manual_override"
    manual = "manual"


# Sources that count toward the one-instance-per-(template, date) rule
TEMPLATE_DERIVED_SOURCES = (CreationSource.from_template, CreationSource.manual_override)


# ---------------------------------------------------------------------------
# Time helpers
# ---------------------------------------------------------------------------


def minutes_between(start: dt.time, end: dt.time) -> int:
    """Whole minutes from ``start`` to ``end`` on the same day (may be negative)."""
    return (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)


def end_time_for(start: dt.time, duration_hours: float) -> Optional[dt.time]:
    """Time of day ``duration_hours`` after ``start``.

    Returns None when the result would not land later on the same day.
    """
    if not (math.isfinite(duration_hours) and 0 < duration_hours <= 24):
        return None
    start_at = dt.datetime.combine(dt.date.min, start)
    end_at = start_at + dt.timedelta(minutes=round(duration_hours * 60))
    if end_at.date() != start_at.date() or end_at <= start_at:
        return None
    return end_at.time()


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class ClassTemplate(BaseModel):
    """A weekly recurring class, e.g. "Vinyasa Flow every Monday 18:00-19:15"."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: Optional[str] = None
    studio_id: str
    title: str
    class_name: str
    weekday: Weekday
    start_time: dt.time
    end_time: dt.time
    duration_hours: float = DEFAULT_DURATION_HOURS
    is_active: bool = True
    auto_schedule: bool = False
    last_scheduled_date: Optional[dt.date] = None

    @classmethod
    def from_start(
        cls,
        *,
        studio_id: str,
        title: str,
        class_name: str,
        weekday: Weekday,
        start_time: dt.time,
        duration_hours: float = DEFAULT_DURATION_HOURS,
        **extra,
    ) -> "ClassTemplate":
        """Build a template whose end time is derived from its duration.

        Raises:
            InvalidTemplate: If the class would run past midnight or the
                duration is not positive.
        """
        end_time = end_time_for(start_time, duration_hours)
        if end_time is None:
            raise InvalidTemplate(
                f"A {duration_hours}h class starting at {start_time.isoformat()} "
                "does not end on the same day"
            )
        return cls(
            studio_id=studio_id,
            title=title,
            class_name=class_name,
            weekday=weekday,
            start_time=start_time,
            end_time=end_time,
            duration_hours=duration_hours,
            **extra,
        )

    def validate_schedule(self) -> None:
        """Check the time window and watermark invariants.

        Raises:
            InvalidTemplate: If ``end_time`` is not after ``start_time``, if
                ``duration_hours`` disagrees with the time window, or if
                ``last_scheduled_date`` is not on the template's weekday.
        """
        minutes = minutes_between(self.start_time, self.end_time)
        if minutes <= 0:
            raise InvalidTemplate(
                f"Template {self.id}: end time {self.end_time.isoformat()} "
                f"is not after start time {self.start_time.isoformat()}"
            )
        if not math.isfinite(self.duration_hours) or round(self.duration_hours * 60) != minutes:
            raise InvalidTemplate(
                f"Template {self.id}: duration {self.duration_hours}h does not "
                f"match the {minutes} minute time window"
            )
        if (
            self.last_scheduled_date is not None
            and Weekday.of(self.last_scheduled_date) != self.weekday
        ):
            raise InvalidTemplate(
                f"Template {self.id}: last scheduled date "
                f"{self.last_scheduled_date.isoformat()} is not a {self.weekday.value}"
            )


class ClassInstance(BaseModel):
    """One concrete, dated class."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: Optional[str] = None
    studio_id: str
    title: str
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    duration_hours: float
    status: ClassStatus = ClassStatus.scheduled
    creation_source: CreationSource
    source_template_id: Optional[str] = None
    notes: str = Field(default="")
