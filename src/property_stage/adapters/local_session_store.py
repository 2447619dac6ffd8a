"""Session record kept in local JSON storage."""

from dataclasses import dataclass

from property_stage.adapters.local_storage import JsonFileStorage
from property_stage.services.sessions import SessionStore

SESSION_KEY = "property_stage_user_session"


@dataclass
class LocalSessionStore(SessionStore):
    """Stores the redacted session projection."""

    storage: JsonFileStorage

    def load(self) -> dict[str, object] | None:
        payload = self.storage.get_item(SESSION_KEY)
        return payload if isinstance(payload, dict) else None

    def save(self, payload: dict[str, object]) -> None:
        self.storage.set_item(SESSION_KEY, payload)

    def clear(self) -> None:
        self.storage.remove_item(SESSION_KEY)
