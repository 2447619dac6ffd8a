"""Supabase-backed generation history repository."""

from dataclasses import dataclass

from supabase import Client

from property_stage.domain.generation import GenerationResult
from property_stage.services.history import HistoryRepository


@dataclass
class SupabaseHistoryRepository(HistoryRepository):
    """Supabase implementation for per-account generation history."""

    client: Client

    def add_entry(self, account_id: str, entry: GenerationResult) -> None:
        """Insert a history row."""
        self.client.table("generation_history").insert(
            {
                "id": entry.id,
                "account_id": account_id,
                "original_image": entry.original_image,
                "transformed_image": entry.transformed_image,
                "style_label": entry.style_label,
                "created_at": entry.timestamp.isoformat(),
            }
        ).execute()

    def list_entries(self, account_id: str, limit: int) -> list[GenerationResult]:
        """Return the newest history rows for an account."""
        response = (
            self.client.table("generation_history")
            .select("id, original_image, transformed_image, style_label, created_at")
            .eq("account_id", account_id)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [
            GenerationResult.from_dict({**row, "timestamp": row["created_at"]})
            for row in response.data or []
        ]

    def trim(self, account_id: str, keep: int) -> None:
        """Delete rows beyond the newest ``keep``."""
        response = (
            self.client.table("generation_history")
            .select("id")
            .eq("account_id", account_id)
            .order("created_at", desc=True)
            .execute()
        )
        stale_ids = [row["id"] for row in (response.data or [])[keep:]]
        if not stale_ids:
            return
        self.client.table("generation_history").delete().in_("id", stale_ids).execute()
