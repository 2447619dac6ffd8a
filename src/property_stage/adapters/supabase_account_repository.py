"""Supabase-backed account repository."""

from dataclasses import dataclass

from supabase import Client

from property_stage.domain.accounts import Account, normalize_email
from property_stage.services.accounts import AccountRepository

_COLUMNS = "id, name, email, password_hash, plan, credits, joined_date, profile_image, is_admin"


@dataclass
class SupabaseAccountRepository(AccountRepository):
    """Supabase implementation for the identity table."""

    client: Client

    def get_by_email(self, email: str) -> Account | None:
        """Return the account for a normalized email, if present."""
        response = (
            self.client.table("accounts")
            .select(_COLUMNS)
            .eq("email", normalize_email(email))
            .limit(1)
            .execute()
        )
        if response.data:
            return Account.from_dict(response.data[0])
        return None

    def get_by_id(self, account_id: str) -> Account | None:
        """Return the account for an id, if present."""
        response = (
            self.client.table("accounts")
            .select(_COLUMNS)
            .eq("id", account_id)
            .limit(1)
            .execute()
        )
        if response.data:
            return Account.from_dict(response.data[0])
        return None

    def save_account(self, account: Account) -> None:
        """Insert or update the account row keyed by email."""
        response = (
            self.client.table("accounts")
            .upsert(account.to_dict(), on_conflict="email")
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save account in Supabase")

    def list_accounts(self) -> list[Account]:
        """Return every account row."""
        response = (
            self.client.table("accounts")
            .select(_COLUMNS)
            .order("joined_date", desc=True)
            .execute()
        )
        return [Account.from_dict(row) for row in response.data or []]
