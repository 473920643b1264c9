"""Supabase implementation of ClassTemplateRepository."""

from datetime import date
from typing import Any, Dict, List, Optional

from supabase import Client

from application.models import ClassTemplate


class SupabaseClassTemplateRepository:
    """Supabase-backed class template repository.

    Rows in class_templates map 1:1 onto ClassTemplate; dates and times are
    stored as ISO strings.
    """

    TABLE = "class_templates"

    def __init__(self, client: Client) -> None:
        self._client = client

    def get(self, template_id: str) -> Optional[ClassTemplate]:
        result = (
            self._client.table(self.TABLE)
            .select("*")
            .eq("id", template_id)
            .limit(1)
            .execute()
        )
        return ClassTemplate.model_validate(result.data[0]) if result.data else None

    def list_active(self) -> List[ClassTemplate]:
        result = (
            self._client.table(self.TABLE)
            .select("*")
            .eq("is_active", True)
            .order("id")
            .execute()
        )
        return [ClassTemplate.model_validate(row) for row in (result.data or [])]

    def set_last_scheduled_date(
        self, template_id: str, day: Optional[date]
    ) -> ClassTemplate:
        return self._patch(
            template_id, {"last_scheduled_date": day.isoformat() if day else None}
        )

    def set_auto_schedule(self, template_id: str, enabled: bool) -> ClassTemplate:
        return self._patch(template_id, {"auto_schedule": enabled})

    def _patch(self, template_id: str, payload: Dict[str, Any]) -> ClassTemplate:
        """Update only the given columns of one row.

        Raises:
            LookupError: If no row with the ID exists.
        """
        result = (
            self._client.table(self.TABLE)
            .update(payload)
            .eq("id", template_id)
            .execute()
        )
        if not result.data:
            raise LookupError(f"Class template {template_id} not found")
        return ClassTemplate.model_validate(result.data[0])
