"""Supabase implementation of ClassInstanceRepository."""

from datetime import date

from postgrest.exceptions import APIError
from supabase import Client

from application.errors import DuplicateOccurrence
from application.models import TEMPLATE_DERIVED_SOURCES, ClassInstance

# PostgreSQL unique_violation
UNIQUE_VIOLATION = "23505"


class SupabaseClassInstanceRepository:
    """Supabase-backed class instance repository.

    Expects a partial unique index on class_instances(source_template_id, date)
    WHERE creation_source IN ('from_template', 'manual_override'), so two
    processes can never both insert the same template occurrence.
    """

    TABLE = "class_instances"

    def __init__(self, client: Client) -> None:
        self._client = client

    def exists(self, source_template_id: str, day: date) -> bool:
        result = (
            self._client.table(self.TABLE)
            .select("id")
            .eq("source_template_id", source_template_id)
            .eq("date", day.isoformat())
            .in_("creation_source", [s.value for s in TEMPLATE_DERIVED_SOURCES])
            .limit(1)
            .execute()
        )
        return bool(result.data)

    def create(self, instance: ClassInstance) -> ClassInstance:
        payload = instance.model_dump(mode="json", exclude={"id"})
        try:
            result = self._client.table(self.TABLE).insert(payload).execute()
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise DuplicateOccurrence(instance.source_template_id, instance.date) from e
            raise
        return ClassInstance.model_validate(result.data[0])
