"""Account registry: signup, login and profile mutations."""

import logging
from dataclasses import dataclass, field, replace
from typing import Protocol
from uuid import uuid4

import bcrypt

from property_stage.domain.accounts import (
    UNLIMITED_CREDITS,
    Account,
    AccountView,
    PlanTier,
    normalize_email,
)
from property_stage.domain.errors import AccountNotFound, DuplicateEmail, WrongSecret
from property_stage.services.clock import Clock, SystemClock

logger = logging.getLogger(__name__)

ADMIN_ACCOUNT_ID = "admin_1"


class AccountRepository(Protocol):
    """Persistence interface for the identity table."""

    def get_by_email(self, email: str) -> Account | None:
        """Return the account stored under a normalized email, if present."""

    def get_by_id(self, account_id: str) -> Account | None:
        """Return the account with the given id, if present."""

    def save_account(self, account: Account) -> None:
        """Insert or replace the account keyed by its normalized email."""

    def list_accounts(self) -> list[Account]:
        """Return every registered account."""


def hash_secret(secret: str, rounds: int = 12) -> str:
    """Hash a password with bcrypt."""
    return bcrypt.hashpw(secret.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode(
        "utf-8"
    )


def check_secret(secret: str, hashed: str) -> bool:
    """Compare a password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(secret.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


@dataclass
class AccountService:
    """Application service for account lifecycle actions."""

    repository: AccountRepository
    default_credits: int = 3
    admin_email: str = "admin@propertystage.hk"
    admin_password: str = "admin"
    hash_rounds: int = 12
    clock: Clock = field(default_factory=SystemClock)

    def ensure_admin(self) -> Account:
        """Seed the administrator account if it is missing."""
        email = normalize_email(self.admin_email)
        existing = self.repository.get_by_email(email)
        if existing:
            return existing
        admin = Account(
            id=ADMIN_ACCOUNT_ID,
            name="System Admin",
            email=email,
            password_hash=hash_secret(self.admin_password, self.hash_rounds),
            plan=PlanTier.MANAGED,
            credits=UNLIMITED_CREDITS,
            joined_date=self.clock.now().date().isoformat(),
            is_admin=True,
        )
        self.repository.save_account(admin)
        logger.info("Seeded administrator account %s", email)
        return admin

    def signup(self, email: str, name: str | None, secret: str) -> AccountView:
        """Register a new account on the free plan."""
        normalized = normalize_email(email)
        if self.repository.get_by_email(normalized):
            raise DuplicateEmail()
        account = Account(
            id=f"user_{uuid4().hex[:9]}",
            name=(name or "").strip() or normalized.split("@")[0],
            email=normalized,
            password_hash=hash_secret(secret, self.hash_rounds),
            plan=PlanTier.FREE,
            credits=self.default_credits,
            joined_date=self.clock.now().date().isoformat(),
        )
        self.repository.save_account(account)
        logger.info("Registered account %s", account.id)
        return account.to_view()

    def login(self, email: str, secret: str) -> AccountView:
        """Check credentials and return the matching account."""
        account = self.repository.get_by_email(normalize_email(email))
        if account is None:
            raise AccountNotFound()
        if not check_secret(secret, account.password_hash):
            raise WrongSecret()
        return account.to_view()

    def get_account(self, account_id: str) -> Account | None:
        """Return the authoritative record for an account id."""
        return self.repository.get_by_id(account_id)

    def get_by_email(self, email: str) -> Account | None:
        """Return the authoritative record for an email address."""
        return self.repository.get_by_email(normalize_email(email))

    def require_account(self, account_id: str) -> Account:
        account = self.repository.get_by_id(account_id)
        if account is None:
            raise AccountNotFound()
        return account

    def update_profile_image(self, account_id: str, image: str) -> AccountView:
        """Replace the profile image of an account."""
        updated = replace(self.require_account(account_id), profile_image=image)
        self.repository.save_account(updated)
        return updated.to_view()

    def upgrade_plan(self, account_id: str, plan: PlanTier, credits: int) -> AccountView:
        """Set a new plan and an absolute credit balance."""
        updated = replace(self.require_account(account_id), plan=plan, credits=credits)
        self.repository.save_account(updated)
        logger.info("Account %s moved to plan %s", account_id, plan.value)
        return updated.to_view()

    def save(self, account: Account) -> AccountView:
        """Persist an already-modified account record."""
        self.repository.save_account(account)
        return account.to_view()

    def list_accounts(self) -> list[AccountView]:
        """Return redacted views of every account."""
        return [account.to_view() for account in self.repository.list_accounts()]
