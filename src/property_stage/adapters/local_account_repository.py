"""Identity table kept in local JSON storage."""

from dataclasses import dataclass

from property_stage.adapters.local_storage import JsonFileStorage
from property_stage.domain.accounts import Account, normalize_email
from property_stage.services.accounts import AccountRepository

ACCOUNTS_KEY = "property_stage_users_db"


@dataclass
class LocalAccountRepository(AccountRepository):
    """Accounts keyed by normalized email in a single JSON document."""

    storage: JsonFileStorage

    def get_by_email(self, email: str) -> Account | None:
        row = self._load().get(normalize_email(email))
        return Account.from_dict(row) if isinstance(row, dict) else None

    def get_by_id(self, account_id: str) -> Account | None:
        for account in self.list_accounts():
            if account.id == account_id:
                return account
        return None

    def save_account(self, account: Account) -> None:
        table = self._load()
        table[normalize_email(account.email)] = account.to_dict()
        self.storage.set_item(ACCOUNTS_KEY, table)

    def list_accounts(self) -> list[Account]:
        return [
            Account.from_dict(row) for row in self._load().values() if isinstance(row, dict)
        ]

    def _load(self) -> dict[str, object]:
        table = self.storage.get_item(ACCOUNTS_KEY)
        return table if isinstance(table, dict) else {}
