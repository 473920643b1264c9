"""Application domain models for class scheduling."""

from .schedule import (
    DEFAULT_DURATION_HOURS,
    TEMPLATE_DERIVED_SOURCES,
    ClassInstance,
    ClassStatus,
    ClassTemplate,
    CreationSource,
    Weekday,
    end_time_for,
    minutes_between,
)

__all__ = [
    "DEFAULT_DURATION_HOURS",
    "TEMPLATE_DERIVED_SOURCES",
    "ClassInstance",
    "ClassStatus",
    "ClassTemplate",
    "CreationSource",
    "Weekday",
    "end_time_for",
    "minutes_between",
]
