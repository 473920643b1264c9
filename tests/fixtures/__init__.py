"""Shared test fixtures."""

from tests.fixtures.schedule import MONDAY, make_template

__all__ = [
    "MONDAY",
    "make_template",
]
