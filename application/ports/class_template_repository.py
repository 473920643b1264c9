"""Port interface for class template storage."""

from datetime import date
from typing import List, Optional, Protocol

from application.models import ClassTemplate


class ClassTemplateRepository(Protocol):
    """Repository protocol for recurring class templates.

    The scheduler never writes a whole template back. Each write touches a
    single column so edits made elsewhere in the meantime survive.
    """

    def get(self, template_id: str) -> Optional[ClassTemplate]:
        """Get a template by ID.

        Returns:
            The template, or None if it does not exist.
        """
        ...

    def list_active(self) -> List[ClassTemplate]:
        """List all templates with is_active=True."""
        ...

    def set_last_scheduled_date(
        self, template_id: str, day: Optional[date]
    ) -> ClassTemplate:
        """Write only ``last_scheduled_date``.

        Returns:
            The stored template after the write.

        Raises:
            LookupError: If no template with this ID exists.
        """
        ...

    def set_auto_schedule(self, template_id: str, enabled: bool) -> ClassTemplate:
        """Write only ``auto_schedule``.

        Returns:
            The stored template after the write.

        Raises:
            LookupError: If no template with this ID exists.
        """
        ...
