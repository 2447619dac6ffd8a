"""Admin service for the account console."""

from dataclasses import dataclass

from property_stage.domain.accounts import PAID_PLANS, AccountView, PlanTier
from property_stage.services.accounts import AccountService
from property_stage.services.history import HistoryService


@dataclass
class AdminService:
    """Service for the admin console."""

    accounts: AccountService
    history: HistoryService

    def list_accounts(
        self, search: str | None = None, plan: PlanTier | None = None
    ) -> list[dict[str, object]]:
        """Return accounts matching a name/email search and plan filter."""
        needle = (search or "").strip().lower()
        rows = []
        for account in self.accounts.list_accounts():
            if needle and needle not in account.name.lower() and needle not in account.email:
                continue
            if plan is not None and account.plan is not plan:
                continue
            rows.append(_serialize_account(account))
        return rows

    def summary(self) -> dict[str, int]:
        """Return signup and credit totals across every account."""
        accounts = self.accounts.list_accounts()
        return {
            "total": len(accounts),
            "paid": sum(1 for account in accounts if account.plan in PAID_PLANS),
            "trial": sum(1 for account in accounts if account.plan is PlanTier.FREE),
            "credits": sum(
                account.credits for account in accounts if not account.has_unlimited_credits
            ),
        }

    def get_account_detail(self, account_id: str) -> dict[str, object] | None:
        """Return one account with its recent generations."""
        account = self.accounts.get_account(account_id)
        if account is None:
            return None
        entries = self.history.list_entries(account_id)
        return {
            **_serialize_account(account.to_view()),
            "generations": [
                {
                    "id": entry.id,
                    "style_label": entry.style_label,
                    "timestamp": entry.timestamp.isoformat(),
                }
                for entry in entries
            ],
        }


def _serialize_account(account: AccountView) -> dict[str, object]:
    row = account.to_dict()
    row.pop("profile_image", None)
    return row
