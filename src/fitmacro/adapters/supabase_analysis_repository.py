"""Supabase repository for per-day face and body analyses."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from fitmacro.domain.longevity import JsonObject
from fitmacro.services.longevity import AnalysisField, AnalysisRepository


@dataclass
class SupabaseAnalysisRepository(AnalysisRepository):
    """Upserts into ``ai_analysis``, one row per user and day."""

    client: Client

    def merge_analysis(
        self, user_id: str, date_key: str, field: AnalysisField, payload: JsonObject
    ) -> None:
        """Write one analysis column; the other column keeps its value."""
        self.client.table("ai_analysis").upsert(
            {
                "user_id": user_id,
                "date_key": date_key,
                "analyzed_at": datetime.now(tz=UTC).isoformat(),
                field: payload,
            },
            on_conflict="user_id,date_key",
        ).execute()
