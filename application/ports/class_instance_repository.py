"""Port interface for dated class instance storage."""

from datetime import date
from typing import Protocol

from application.models import ClassInstance


class ClassInstanceRepository(Protocol):
    """Repository protocol for concrete class instances."""

    def exists(self, source_template_id: str, day: date) -> bool:
        """Check for a template-derived instance on a date.

        Only instances created from the template or as a manual override
        of it count; plain manual instances are ignored.
        """
        ...

    def create(self, instance: ClassInstance) -> ClassInstance:
        """Insert a new instance.

        Implementations backed by a uniqueness constraint on
        (source_template_id, date) raise DuplicateOccurrence when the
        pair is already taken.

        Returns:
            The stored instance including its assigned 'id'.
        """
        ...
