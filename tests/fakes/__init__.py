"""
Fake implementations for testing.

In-memory fake implementations of the scheduling repository interfaces for
fast, isolated testing without database dependencies.
"""

from tests.fakes.schedule_repositories import (
    InMemoryClassInstanceRepository,
    InMemoryClassTemplateRepository,
)

__all__ = [
    "InMemoryClassInstanceRepository",
    "InMemoryClassTemplateRepository",
]
