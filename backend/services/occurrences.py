"""Weekly occurrence calculation for class templates.

Pure calendar arithmetic on local dates, no I/O.
"""

from datetime import date, timedelta
from typing import List

from application.models import ClassTemplate, Weekday

ONE_WEEK = timedelta(days=7)


def days_until(weekday: Weekday, day: date) -> int:
    """Days from ``day`` to the next ``weekday`` (0 when ``day`` is one)."""
    return (weekday.number - day.weekday()) % 7


def first_occurrence_on_or_after(weekday: Weekday, day: date) -> date:
    """Return the first date on or after ``day`` that falls on ``weekday``."""
    return day + timedelta(days=days_until(weekday, day))


def occurrences(template: ClassTemplate, start: date, horizon_end: date) -> List[date]:
    """List the dates in ``[start, horizon_end]`` that fall on the template's weekday.

    Both bounds are inclusive. The result is ascending with exactly seven
    days between neighbours, and empty when ``start`` is after
    ``horizon_end``.
    """
    offset = days_until(template.weekday, start)
    span = (horizon_end - start).days
    if span < offset:
        return []
    first = first_occurrence_on_or_after(template.weekday, start)
    count = (span - offset) // 7 + 1
    return [first + ONE_WEEK * i for i in range(count)]
