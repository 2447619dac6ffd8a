"""Persistent, capped generation history per account."""

from dataclasses import dataclass
from typing import Protocol

from property_stage.domain.generation import GenerationResult


class HistoryRepository(Protocol):
    """Persistence interface for generation history."""

    def add_entry(self, account_id: str, entry: GenerationResult) -> None:
        """Store a new history entry."""

    def list_entries(self, account_id: str, limit: int) -> list[GenerationResult]:
        """Return up to ``limit`` entries, newest first."""

    def trim(self, account_id: str, keep: int) -> None:
        """Delete everything but the newest ``keep`` entries."""


@dataclass
class HistoryService:
    """Records successful generations, evicting the oldest beyond the cap."""

    repository: HistoryRepository
    limit: int = 50

    def record(self, account_id: str, entry: GenerationResult) -> None:
        self.repository.add_entry(account_id, entry)
        self.repository.trim(account_id, keep=self.limit)

    def list_entries(self, account_id: str) -> list[GenerationResult]:
        return self.repository.list_entries(account_id, self.limit)

    def get_entry(self, account_id: str, entry_id: str) -> GenerationResult | None:
        for entry in self.list_entries(account_id):
            if entry.id == entry_id:
                return entry
        return None
