"""Factories for scheduling test data."""

from datetime import date, time

from application.models import ClassTemplate, Weekday

# 2024-01-29 is a Monday
MONDAY = date(2024, 1, 29)


def make_template(**overrides) -> ClassTemplate:
    """Vinyasa Flow every Monday 18:00-19:15, auto-scheduled, never run."""
    fields = {
        "studio_id": "studio-1",
        "title": "Monday evening flow",
        "class_name": "Vinyasa Flow",
        "weekday": Weekday.monday,
        "start_time": time(18, 0),
        "end_time": time(19, 15),
        "duration_hours": 1.25,
        "is_active": True,
        "auto_schedule": True,
        "last_scheduled_date": None,
    }
    fields.update(overrides)
    return ClassTemplate(**fields)
