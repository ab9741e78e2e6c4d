"""Supabase repository for daily health records."""

from dataclasses import dataclass

from supabase import Client

from fitmacro.domain.longevity import JsonObject
from fitmacro.services.longevity import HealthRecordRepository


@dataclass
class SupabaseHealthRecordRepository(HealthRecordRepository):
    """Reads the ``health_records`` table keyed by user and date."""

    client: Client

    def get_health_record(self, user_id: str, date_key: str) -> JsonObject | None:
        """Return the record's data for the day, if any."""
        response = (
            self.client.table("health_records")
            .select("data")
            .eq("user_id", user_id)
            .eq("date_key", date_key)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        data = response.data[0].get("data")
        return data if isinstance(data, dict) else None
