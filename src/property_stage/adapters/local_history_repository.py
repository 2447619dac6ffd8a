"""Generation history kept in local JSON storage."""

import logging
from dataclasses import dataclass

from property_stage.adapters.local_storage import JsonFileStorage
from property_stage.domain.generation import GenerationResult
from property_stage.services.history import HistoryRepository

logger = logging.getLogger(__name__)


def history_key(account_id: str) -> str:
    return f"property_stage_history_{account_id}"


@dataclass
class LocalHistoryRepository(HistoryRepository):
    """One newest-first JSON list per account."""

    storage: JsonFileStorage

    def add_entry(self, account_id: str, entry: GenerationResult) -> None:
        rows = self._load(account_id)
        rows.insert(0, entry.to_dict())
        self.storage.set_item(history_key(account_id), rows)

    def list_entries(self, account_id: str, limit: int) -> list[GenerationResult]:
        entries = []
        for row in self._load(account_id)[:limit]:
            try:
                entries.append(GenerationResult.from_dict(row))
            except (KeyError, ValueError):
                logger.warning("Skipping malformed history entry for %s", account_id)
        return entries

    def trim(self, account_id: str, keep: int) -> None:
        rows = self._load(account_id)
        if len(rows) > keep:
            self.storage.set_item(history_key(account_id), rows[:keep])

    def _load(self, account_id: str) -> list[dict[str, object]]:
        rows = self.storage.get_item(history_key(account_id))
        if not isinstance(rows, list):
            return []
        return [row for row in rows if isinstance(row, dict)]
