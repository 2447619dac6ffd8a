"""Per-account credit ledger."""

import logging
from dataclasses import dataclass, replace

from property_stage.domain.accounts import UNLIMITED_CREDITS, AccountView, PlanTier
from property_stage.domain.errors import InvalidInput
from property_stage.services.accounts import AccountService
from property_stage.services.sessions import SessionManager

logger = logging.getLogger(__name__)


@dataclass
class CreditLedger:
    """Gates paid actions on the account balance.

    Deduction is the only operation that lowers a balance. ``-1`` means
    unlimited and is never decremented.
    """

    accounts: AccountService
    sessions: SessionManager

    def balance(self, account_id: str) -> int:
        return self.accounts.require_account(account_id).credits

    def has_credit(self, account_id: str) -> bool:
        """Return whether a paid action may start, without mutating anything."""
        account = self.accounts.get_account(account_id)
        if account is None:
            return False
        return account.has_unlimited_credits or account.credits > 0

    def check_and_deduct(self, account_id: str) -> bool:
        """Consume one credit. Return False when the balance is exhausted."""
        account = self.accounts.get_account(account_id)
        if account is None:
            return False
        if account.has_unlimited_credits:
            return True
        if account.credits <= 0:
            return False
        self.accounts.save(replace(account, credits=account.credits - 1))
        self.sessions.refresh(account_id)
        logger.info("Deducted one credit from %s (%d left)", account_id, account.credits - 1)
        return True

    def set_balance(self, account_id: str, plan: PlanTier, credits: int) -> AccountView:
        """Set the plan and an absolute balance, as checkout does."""
        if credits < UNLIMITED_CREDITS:
            raise InvalidInput(f"Credits must be >= {UNLIMITED_CREDITS}, got {credits}.")
        view = self.accounts.upgrade_plan(account_id, plan, credits)
        self.sessions.refresh(account_id)
        return view
